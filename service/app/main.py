import json

from fastapi import FastAPI, Request, Header, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import get_settings
from app.api.subscriptions import router as subscriptions_router
from app.agents.profiles import get_profile_selector
from app.agents.schemas import Intent
from app.line_bot.bot import handle_line_delivery
from app.line_bot.line_api import verify_signature, close_line_client
from app.logging_config import bot_logger as logger
from app.services.generation import get_generation_client

app = FastAPI(
    title="LINE Coach Bot",
    description="Subscription-gated fitness & styling assistant for LINE",
    version="0.1.0"
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    settings = get_settings()
    print(f"[STARTUP] LINE Coach Bot ({settings.environment})")
    if not settings.line_channel_secret:
        print("[STARTUP] WARNING: LINE_CHANNEL_SECRET not set, signature check disabled")


@app.on_event("shutdown")
async def shutdown_event():
    """Close outbound clients on application shutdown."""
    print("[SHUTDOWN] Closing clients...")
    await close_line_client()
    await get_generation_client().close()

    from app.redis_client import get_redis
    await get_redis().aclose()
    print("[SHUTDOWN] Done")


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "alive"


@app.get("/health", response_class=PlainTextResponse)
async def health_check():
    return "ok"


# Debug: liveness over GET, does not touch the pipeline
@app.get("/webhook/line", response_class=PlainTextResponse)
async def line_webhook_probe():
    return "LINE webhook endpoint is alive (POST from LINE required)."


@app.post("/webhook/line")
async def line_webhook(
    request: Request,
    x_line_signature: str = Header(None)
):
    """
    Webhook endpoint for LINE deliveries.

    Waits for every event to be answered, then always returns 200 so LINE
    does not redeliver the batch.
    """
    settings = get_settings()
    body = await request.body()

    # Verify signature if configured
    if settings.line_channel_secret:
        if not verify_signature(body, x_line_signature, settings.line_channel_secret):
            raise HTTPException(status_code=403, detail="Invalid signature")

    try:
        payload = json.loads(body or b"{}")
    except ValueError as e:
        logger.warning(f"Unparseable webhook body: {e}")
        return {"ok": True}

    await handle_line_delivery(payload)

    return {"ok": True}


# Generation connectivity probe
@app.get("/test/ai")
async def test_ai():
    profile = get_profile_selector().select(Intent.GENERAL_CHAT).model_copy(update={"max_tokens": 40})
    try:
        text = await get_generation_client().generate(profile, "接続テスト。1行で返答して。")
        return {"ok": True, "text": text}
    except Exception as e:
        logger.error(f"/test/ai error: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "name": type(e).__name__, "message": str(e)},
        )


# Include routers
app.include_router(subscriptions_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=10000)
