from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from panel.backend_client import AdminBackendClient, load_backend_settings
from panel.config import dlog
from panel.webui.auth import load_panel_auth_config
from panel.webui.routes import create_panel_router
from panel.webui.state import init_panel_state


load_dotenv()
app = FastAPI()

backend_client = AdminBackendClient.from_settings(load_backend_settings())

# Mount /panel only when explicitly enabled and a password is configured.
_panel_config = load_panel_auth_config()
if _panel_config.enabled:
    _panel_state = init_panel_state(backend_client)
    app.include_router(create_panel_router(_panel_config, _panel_state))

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> RedirectResponse:
        return RedirectResponse("/panel/")
else:
    if _panel_config.disabled_reason:
        dlog("panel_disabled", _panel_config.disabled_reason)


if __name__ == "__main__":
    # Convenience for local runs: python admin_panel.py --panel-debug
    import os

    import uvicorn

    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "18080"))
    uvicorn.run("admin_panel:app", host=host, port=port, reload=False)
