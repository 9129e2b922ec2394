# 환경변수 로딩 (.env)
# 기본값은 로컬 개발용 고정값 (몽고 localhost/test, 포트 3000)
from pathlib import Path

from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "test"

    HOST: str = "127.0.0.1"
    PORT: int = 3000
    LOG_LEVEL: str = "info"

    # 정적 파일/뷰 템플릿 위치, 레이아웃 이름
    STATIC_DIR: Path = PACKAGE_DIR / "static"
    VIEWS_DIR: Path = PACKAGE_DIR / "views"
    LAYOUT: str = "layout"

    class Config:
        env_file = ".env"

settings = Settings()
