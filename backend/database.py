import psycopg2
import structlog
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
from config import get_db_config

logger = structlog.get_logger(__name__)


@contextmanager
def get_db():
    """Get a database connection with automatic commit/rollback."""
    config = get_db_config()
    conn = psycopg2.connect(
        host=config["host"],
        port=config["port"],
        database=config["database"],
        user=config["user"],
        password=config["password"],
        cursor_factory=RealDictCursor
    )
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    """Initialize database schema."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Users mirror the identity provider's accounts
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                username TEXT,
                email TEXT,
                is_admin BOOLEAN NOT NULL DEFAULT FALSE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Events table
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                event_date DATE NOT NULL,
                tee_time TEXT,
                course_name TEXT,
                course_id TEXT,
                course_address TEXT,
                course_lat DOUBLE PRECISION,
                course_lng DOUBLE PRECISION,
                notes TEXT,
                proposer_id TEXT REFERENCES users(id) ON DELETE SET NULL,
                booked BOOLEAN NOT NULL DEFAULT FALSE,
                booked_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # One response per (event, user); id preserves first-response order
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS responses (
                id SERIAL PRIMARY KEY,
                event_id TEXT NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                status TEXT NOT NULL CHECK(status IN ('available', 'unavailable')),
                preferences JSONB,
                responded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(event_id, user_id)
            )
        """)

        conn.commit()
    logger.info("Database schema ready")


if __name__ == "__main__":
    init_db()
    print("Database initialized successfully")
