# backend/verifyme/database.py
import asyncpg

from verifyme import config
from verifyme.utils.logger import get_logger
from verifyme.utils.security import hash_password

logger = get_logger(__name__)


async def create_pool() -> asyncpg.Pool:
    """Create the connection pool and make sure the schema exists.

    Called once from the application lifespan; the pool is handed to the
    record store instead of living in a module global.
    """
    pool = await asyncpg.create_pool(
        host=config.DB_HOST,
        port=config.DB_PORT,
        user=config.DB_USER,
        password=config.DB_PASS,
        database=config.DB_NAME,
        min_size=config.DB_POOL_MIN_SIZE,
        max_size=config.DB_POOL_MAX_SIZE,
    )
    await create_tables(pool)
    return pool


async def close_pool(pool: asyncpg.Pool | None):
    """Close database connection pool"""
    if pool:
        await pool.close()


async def create_tables(pool: asyncpg.Pool):
    """Create all tables with proper constraints"""
    async with pool.acquire() as conn:
        # Record ids are assigned by the database, never by clients
        await conn.execute("""
            CREATE OR REPLACE FUNCTION gen_record_id() RETURNS TEXT AS $$
            DECLARE
                chars TEXT := 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789';
                result TEXT := '';
            BEGIN
                FOR i IN 1..20 LOOP
                    result := result || substr(chars, 1 + floor(random() * 62)::int, 1);
                END LOOP;
                RETURN result;
            END;
            $$ LANGUAGE plpgsql VOLATILE;
        """)

        # Admin accounts
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS admins (
                id SERIAL PRIMARY KEY,
                email VARCHAR(255) UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                is_active BOOLEAN DEFAULT TRUE,
                last_login TIMESTAMPTZ,
                created_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
            );
        """)

        # Students collection
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS students (
                id TEXT PRIMARY KEY DEFAULT gen_record_id()
                    CHECK (id ~ '^[A-Za-z0-9]{20}$'),
                full_name VARCHAR(255) NOT NULL,
                matric_number VARCHAR(50) NOT NULL,
                faculty VARCHAR(100) NOT NULL,
                department VARCHAR(100) NOT NULL,
                photo_url TEXT NOT NULL,
                status VARCHAR(20) NOT NULL DEFAULT 'Pending'
                    CHECK (status IN ('Pending', 'Verified', 'Rejected')),
                created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
                verified_at TIMESTAMPTZ,
                verified_by VARCHAR(255)
            );
        """)

        # Append-only scan audit trail
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS scan_logs (
                id SERIAL PRIMARY KEY,
                student_id TEXT NOT NULL,
                admin_id VARCHAR(100) NOT NULL,
                admin_email VARCHAR(255) NOT NULL,
                raw_qr_data TEXT NOT NULL,
                timestamp TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
        """)

        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_students_created ON students(created_at DESC);
            CREATE INDEX IF NOT EXISTS idx_students_matric ON students(matric_number);
            CREATE INDEX IF NOT EXISTS idx_students_status ON students(status);
            CREATE INDEX IF NOT EXISTS idx_scan_logs_student ON scan_logs(student_id);
        """)

        # Create default admin if not exists
        admin_exists = await conn.fetchrow("SELECT id FROM admins LIMIT 1")
        if not admin_exists:
            await conn.execute("""
                INSERT INTO admins (email, password_hash)
                VALUES ($1, $2)
            """, config.DEFAULT_ADMIN_EMAIL, hash_password(config.DEFAULT_ADMIN_PASSWORD))
            logger.info("Default admin created: %s", config.DEFAULT_ADMIN_EMAIL)
