from aiohttp import web

from app.logger import logger


@web.middleware
async def error_middleware(request: web.Request, handler):
    """
    Renders every error escaping a handler as ``{"error": message}``.
    HTTP errors keep their status, anything else becomes a 500.
    """
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        logger.debug(f"{request.method} {request.path} -> {e.status} {e.reason}")
        return web.json_response({"error": e.reason}, status=e.status)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return web.json_response({"error": str(e) or e.__class__.__name__}, status=500)
