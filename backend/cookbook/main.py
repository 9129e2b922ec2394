# cookbook/main.py
# FastAPI 앱 초기화: 템플릿 엔진(레이아웃) + 정적 파일 + 몽고 연결
# 라우트는 아직 없음 (헬스체크만)

from __future__ import annotations

import logging
from asyncio import sleep
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from cookbook.core.config import settings
from cookbook.db.init import get_db, init_db, close_db
from cookbook.db.indexes import ensure_indexes

log = logging.getLogger(__name__)

app = FastAPI(title="Cookbook", version="0.1.0")

# 정적 파일 /static, 뷰는 views/*.html (레이아웃 상속)
app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
templates = Jinja2Templates(directory=settings.VIEWS_DIR)

def render(request: Request, view: str, context: Optional[Dict[str, Any]] = None):
    # 모든 뷰는 {% extends layout %} 로 공통 레이아웃을 쓴다
    ctx = {"layout": f"{settings.LAYOUT}.html", **(context or {})}
    return templates.TemplateResponse(request, f"{view}.html", ctx)

# 앱 시작/종료 이벤트 핸들러
@app.on_event("startup")
async def on_startup() -> None:
    # 1) DB 먼저 붙는다 (최대 20회, 1초 간격)
    db = None
    for i in range(20):
        try:
            db = await init_db()
            log.info("[startup] db ready")
            break
        except Exception as e:
            log.warning("[startup] db init retry %d: %s", i + 1, e)
            await sleep(1.0)
    if db is None:
        log.error("[startup] db init failed after retries")
        return

    # 2) 인덱스 보장
    try:
        await ensure_indexes()
        log.info("[startup] indexes ensured")
    except Exception as e:
        log.error("[startup] ensure_indexes failed: %s", e)

@app.on_event("shutdown")
async def on_shutdown() -> None:
    # 몽고db 커넥션 정리
    await close_db()

@app.get("/health")
async def health():
    ok = {"status": "ok", "db": "skip"}
    try:
        db = get_db()
        await db.command("ping")
        ok["db"] = "ok"
    except Exception as e:
        ok["db"] = f"error: {e}"
    return ok

# put routes here

def run() -> None:
    import uvicorn

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log.info("Server running on http://localhost:%d/.", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL)

if __name__ == "__main__":
    run()
