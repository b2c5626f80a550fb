from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings


# SQLAlchemy 접속 URL (DATABASE_URL 우선, 없으면 DB_* 조합)
DATABASE_URL = settings.sqlalchemy_database_url

# 엔진 생성
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,               # 연결이 죽었는지 자동 체크
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )

# 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# 의존성 주입 함수
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
