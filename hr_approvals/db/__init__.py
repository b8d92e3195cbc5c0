from hr_approvals.db.session import SessionLocal, build_engine, engine, get_db, init_db

__all__ = ["SessionLocal", "build_engine", "engine", "get_db", "init_db"]
