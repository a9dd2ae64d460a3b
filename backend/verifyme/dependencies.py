# backend/verifyme/dependencies.py
# Objects built in the lifespan hook live on app.state; routers reach them
# only through these dependencies so tests can override each one.
from fastapi import Depends, HTTPException, Request

from verifyme.scanner.desk import ScanDesk
from verifyme.services.verification import VerificationService
from verifyme.store import RecordStore
from verifyme.utils.image_upload import CloudinaryUploader


def get_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(503, "Database is not connected")
    return store


def get_image_uploader(request: Request) -> CloudinaryUploader:
    return request.app.state.uploader


def get_verification_service(
    request: Request,
    store: RecordStore = Depends(get_store),
) -> VerificationService:
    return VerificationService(store, request.app.state.record_view)


def get_scan_desk(request: Request) -> ScanDesk:
    desk = getattr(request.app.state, "scan_desk", None)
    if desk is None:
        raise HTTPException(503, "Scanner is not available")
    return desk
