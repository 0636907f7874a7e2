from __future__ import annotations

import time
from html import escape
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from panel import commands
from panel.errors import BackendError, SchemaError
from panel.groups import orphaned_elements, render_editable_groups, render_read_only_section
from panel.toggles import LiveForm, ToggleController
from panel.view import ViewController
from panel.webui.auth import Capability, PanelAuthConfig, public_panel_config, require_capability, require_operator
from panel.webui.state import PanelRuntimeState
from panel.webui import templates


PANEL_HOME = "/panel/"


def _section_dict(section) -> Dict[str, Any]:
    return {
        "key": section.key,
        "title": section.title,
        "read_only": section.read_only,
        "toggle": section.toggle,
        "controls": [
            {
                "element": c.element,
                "type": c.field_type.value,
                "label": c.label,
                "name": c.name,
                "value": c.value,
                "placeholder": c.placeholder,
                "disabled": c.disabled,
                "visibility_toggle": c.visibility_toggle,
            }
            for c in section.controls
        ],
    }


def create_panel_router(config: PanelAuthConfig, state: PanelRuntimeState) -> APIRouter:
    """Create the /panel router: the HTML page plus one POST per operator command."""
    router = APIRouter(prefix="/panel", dependencies=[Depends(require_operator(config))])
    user_mgmt = Depends(require_capability(config, Capability.USER_MGMT))
    config_edit = Depends(require_capability(config, Capability.CONFIG_EDIT))
    backup = Depends(require_capability(config, Capability.BACKUP))

    def reload() -> RedirectResponse:
        return RedirectResponse(PANEL_HOME, status_code=303)

    def view() -> ViewController[RedirectResponse]:
        return ViewController(state.dispatcher, state.notices.add, reload)

    async def _form_value(request: Request, key: str) -> Optional[str]:
        form = await request.form()
        value = form.get(key)
        return value if isinstance(value, str) else None

    def _find_user_email(user_id: str) -> Optional[str]:
        for user in state.client.list_users():
            if user.id == user_id:
                return user.email
        return None

    @router.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def panel_index() -> HTMLResponse:
        notice_html = templates.render_notice(state.notices.take_pending())

        try:
            users = state.client.list_users()
            users_html = templates.render_users(users, allow_manage=config.allows(Capability.USER_MGMT))
        except BackendError as e:
            users_html = f'<div class="notice error">{escape(str(e))}</div>'

        bindings: list = []
        try:
            schema = state.client.fetch_schema()
            controller = ToggleController.from_schema(schema)
            config_html = templates.render_config(
                render_editable_groups(schema),
                render_read_only_section(schema),
                allow_edit=config.allows(Capability.CONFIG_EDIT),
                allow_backup=config.allows(Capability.BACKUP),
            )
            bindings = controller.to_dict()
        except (BackendError, SchemaError) as e:
            config_html = f'<div class="notice error">Could not render settings\n{escape(str(e))}</div>'

        return HTMLResponse(
            content=templates.render_page(
                notice=notice_html,
                users=users_html,
                config=config_html,
                bindings=bindings,
            )
        )

    @router.get("/health")
    async def panel_health():
        return {
            "status": "ok",
            "uptime_seconds": int(time.time() - state.start_time),
            "backend": state.client.base_url,
            "config": public_panel_config(config),
        }

    @router.get("/api/sections")
    async def panel_sections():
        try:
            schema = state.client.fetch_schema()
            controller = ToggleController.from_schema(schema)
        except BackendError as e:
            raise HTTPException(status_code=502, detail=str(e))
        except SchemaError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {
            "status": "ok",
            "sections": [_section_dict(s) for s in render_editable_groups(schema)],
            "read_only": _section_dict(render_read_only_section(schema)),
            "bindings": controller.to_dict(),
            "orphaned": [e.name for e in orphaned_elements(schema)],
        }

    @router.get("/api/notices")
    async def panel_notices():
        return {"status": "ok", "notices": state.notices.snapshot()}

    @router.post("/users/update_revision", dependencies=[user_mgmt])
    async def panel_update_revision():
        return view().run(commands.update_revision())

    @router.post("/users/{user_id}/delete", dependencies=[user_mgmt])
    async def panel_user_delete(user_id: str, request: Request):
        confirmation = await _form_value(request, "confirm")
        try:
            email = _find_user_email(user_id)
        except BackendError as e:
            state.notices.add(f"Error deleting user\n{e}", "error")
            return reload()
        if email is None:
            state.notices.add("Error deleting user\nUser not found", "error")
            return reload()
        return view().run(commands.delete_user(user_id, email), confirmation=confirmation)

    @router.post("/users/{user_id}/remove-2fa", dependencies=[user_mgmt])
    async def panel_user_remove_2fa(user_id: str):
        return view().run(commands.remove_two_factor(user_id))

    @router.post("/users/{user_id}/deauth", dependencies=[user_mgmt])
    async def panel_user_deauth(user_id: str):
        return view().run(commands.deauthorize_sessions(user_id))

    @router.post("/users/{user_id}/disable", dependencies=[user_mgmt])
    async def panel_user_disable(user_id: str):
        return view().run(commands.disable_user(user_id))

    @router.post("/users/{user_id}/enable", dependencies=[user_mgmt])
    async def panel_user_enable(user_id: str):
        return view().run(commands.enable_user(user_id))

    @router.post("/users/{user_id}/invite/resend", dependencies=[user_mgmt])
    async def panel_user_resend_invite(user_id: str):
        return view().run(commands.resend_invite(user_id))

    @router.post("/invite", dependencies=[user_mgmt])
    async def panel_invite(request: Request):
        email = ((await _form_value(request, "email")) or "").strip()
        if not email:
            state.notices.add("Error inviting user\nAn email address is required", "error")
            return reload()
        return view().run(commands.invite_user(), {"email": email})

    @router.post("/config", dependencies=[config_edit])
    async def panel_config_save(request: Request):
        form_data = await request.form()
        try:
            schema = state.client.fetch_schema()
            controller = ToggleController.from_schema(schema)
        except (BackendError, SchemaError) as e:
            state.notices.add(f"Error saving config\n{e}", "error")
            return reload()
        sections = render_editable_groups(schema)
        live = LiveForm.from_submission(sections, form_data)
        controller.reconcile(live, LiveForm.from_sections(sections))
        return view().save_config(commands.save_config(), live)

    @router.post("/config/delete", dependencies=[config_edit])
    async def panel_config_reset(request: Request):
        confirmation = await _form_value(request, "confirm")
        return view().run(commands.reset_config(), confirmation=confirmation)

    @router.post("/config/backup_db", dependencies=[backup])
    async def panel_backup_db():
        return view().run(commands.backup_database())

    @router.post("/test/smtp", dependencies=[config_edit])
    async def panel_test_smtp(request: Request):
        email = ((await _form_value(request, "email")) or "").strip()
        if not email:
            state.notices.add("Error sending SMTP test email\nAn email address is required", "error")
            return reload()
        return view().run(commands.send_test_email(), {"email": email})

    return router
