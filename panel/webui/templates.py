"""Server-side HTML for the admin panel page (served at /panel)."""

from __future__ import annotations

import json
from html import escape
from string import Template
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

from panel.backend_client import UserSummary
from panel.fields import Control, field_kind
from panel.groups import Section
from panel.schema import FieldType
from panel.webui.state import Notice


SMTP_GROUP = "smtp"

PANEL_PAGE = Template(r"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Admin Panel</title>
  <style>
    :root {
      --bg: #050b15;
      --panel: #0f1629;
      --text: #e8eef7;
      --muted: #9cb3d3;
      --accent: #6dd5fa;
      --danger: #ff6b6b;
      --success: #4ade80;
      --border: rgba(255, 255, 255, 0.06);
      --font: "Inter", "Segoe UI", system-ui, -apple-system, sans-serif;
    }
    * { box-sizing: border-box; }
    body { margin: 0; font-family: var(--font); background: var(--bg); color: var(--text); }
    .page { max-width: 1100px; margin: 0 auto; padding: 28px 22px 48px; }
    .card { background: var(--panel); border: 1px solid var(--border); border-radius: 14px; padding: 16px; margin-bottom: 14px; }
    .card > summary { cursor: pointer; font-weight: 600; color: var(--accent); }
    .row { display: grid; grid-template-columns: 260px 1fr; gap: 10px; align-items: center; margin: 8px 0; }
    .row label { color: var(--muted); }
    input[type=text], input[type=number], input[type=password], input[type=email] {
      width: 100%; padding: 8px 10px; border-radius: 8px; border: 1px solid var(--border);
      background: rgba(255,255,255,0.04); color: var(--text);
    }
    input:disabled { opacity: 0.5; }
    button { padding: 8px 12px; border-radius: 8px; border: 1px solid var(--border); background: rgba(255,255,255,0.06); color: var(--text); cursor: pointer; }
    button.danger { border-color: var(--danger); color: var(--danger); }
    table { width: 100%; border-collapse: collapse; }
    td, th { padding: 8px; border-bottom: 1px solid var(--border); text-align: left; vertical-align: top; }
    .notice { white-space: pre-line; padding: 12px 14px; border-radius: 10px; margin-bottom: 14px; border: 1px solid var(--border); }
    .notice.success { border-color: var(--success); }
    .notice.error, .notice.warning { border-color: var(--danger); }
    .inline { display: inline-flex; gap: 6px; margin: 2px 0; }
    .muted { color: var(--muted); font-size: 13px; }
  </style>
</head>
<body>
  <div class="page">
    <h1>Admin Panel</h1>
    $notice
    <section class="card">
      <h2>Users</h2>
      $users
      <form method="post" action="/panel/invite" class="inline">
        <input type="email" name="email" placeholder="Email to invite" required />
        <button type="submit">Invite</button>
      </form>
      <form method="post" action="/panel/users/update_revision" class="inline">
        <button type="submit">Force clients to resync</button>
      </form>
    </section>
    <section>
      <h2>Settings</h2>
      $config
    </section>
  </div>
  <script>
    const TOGGLE_BINDINGS = $bindings;

    function bindToggle(binding) {
      const toggle = document.getElementById("input_" + binding.toggle);
      if (!toggle) return;
      const deps = binding.dependents
        .map((name) => document.getElementById("input_" + name))
        .filter((el) => el);
      function apply(clear) {
        deps.forEach((el) => {
          el.disabled = !toggle.checked;
          if (clear && !toggle.checked) {
            if (el.type === "checkbox") { el.checked = false; } else { el.value = ""; }
          }
        });
        toggle.disabled = false;
      }
      apply(false);
      toggle.addEventListener("change", () => apply(true));
    }
    TOGGLE_BINDINGS.forEach(bindToggle);

    // Disabled inputs are left out of a form post.
    const configForm = document.getElementById("config-form");
    if (configForm) {
      configForm.addEventListener("submit", () => {
        configForm.querySelectorAll("input[name]:disabled").forEach((el) => { el.disabled = false; });
      });
    }

    document.querySelectorAll("[data-pw-toggle]").forEach((btn) => {
      btn.addEventListener("click", () => {
        const input = document.getElementById(btn.dataset.pwToggle);
        if (input) input.type = input.type === "password" ? "text" : "password";
      });
    });
  </script>
</body>
</html>
""")


def render_notice(notice: Optional[Notice]) -> str:
    if notice is None:
        return ""
    return f'<div class="notice {escape(notice.level)}" role="alert">{escape(notice.text)}</div>'


def render_control(control: Control) -> str:
    attrs = [
        f'id="{escape(control.input_id)}"',
        f'type="{field_kind(control.field_type).input_type}"',
    ]
    if control.name is not None:
        attrs.append(f'name="{escape(control.name)}"')
    if control.field_type is FieldType.CHECKBOX:
        if control.checked:
            attrs.append("checked")
    else:
        attrs.append(f'value="{escape(str(control.value))}"')
        if control.placeholder:
            attrs.append(f'placeholder="{escape(control.placeholder)}"')
        attrs.append('spellcheck="false"')
    if control.disabled:
        attrs.append("disabled")
    html = f"<input {' '.join(attrs)} />"
    if control.visibility_toggle:
        html += f' <button type="button" data-pw-toggle="{escape(control.input_id)}">Show/hide</button>'
    return (
        f'<div class="row" title="{escape(control.title)}">'
        f'<label for="{escape(control.input_id)}">{escape(control.label)}</label>'
        f"<div>{html}</div></div>"
    )


def render_section(section: Section, extra: str = "") -> str:
    note = f'<p class="muted">{escape(section.note)}</p>' if section.note else ""
    body = "".join(render_control(c) for c in section.controls)
    return (
        f'<details class="card" id="{escape(section.dom_id)}">'
        f"<summary>{escape(section.title)}</summary>{note}{body}{extra}</details>"
    )


def _smtp_test_controls() -> str:
    return (
        '<div class="row"><label for="smtp-test-email">Test SMTP</label><div class="inline">'
        '<input type="email" id="smtp-test-email" name="email" form="smtp-test-form" placeholder="Enter test email" />'
        '<button type="submit" form="smtp-test-form">Send test email</button></div></div>'
    )


def render_config(
    editable: Sequence[Section],
    read_only: Section,
    *,
    allow_edit: bool,
    allow_backup: bool,
) -> str:
    parts: List[str] = ['<form method="post" action="/panel/config" id="config-form">']
    for section in editable:
        parts.append(render_section(section, _smtp_test_controls() if section.key == SMTP_GROUP else ""))
    if allow_edit:
        parts.append('<button type="submit">Save</button>')
    parts.append("</form>")
    parts.append('<form method="post" action="/panel/test/smtp" id="smtp-test-form"></form>')
    if allow_edit:
        parts.append(
            '<form method="post" action="/panel/config/delete" class="inline">'
            '<input type="text" name="confirm" placeholder="Type DELETE to reset" />'
            '<button type="submit" class="danger">Reset defaults</button></form>'
        )
    if allow_backup:
        parts.append(
            '<form method="post" action="/panel/config/backup_db" class="inline">'
            '<button type="submit">Backup database</button></form>'
        )
    parts.append(render_section(read_only))
    return "".join(parts)


def _user_action(user: UserSummary, action: str, label: str, extra: str = "", css: str = "") -> str:
    cls = f' class="{css}"' if css else ""
    return (
        f'<form method="post" action="/panel/users/{escape(quote(user.id, safe=""))}/{action}" class="inline">'
        f"{extra}<button type=\"submit\"{cls}>{escape(label)}</button></form>"
    )


def render_users(users: Iterable[UserSummary], *, allow_manage: bool) -> str:
    rows = []
    for user in users:
        actions = ""
        if allow_manage:
            actions = "".join(
                [
                    _user_action(user, "deauth", "Deauthorize sessions"),
                    _user_action(user, "remove-2fa", "Remove 2FA") if user.two_factor_enabled else "",
                    _user_action(user, "disable", "Disable") if user.enabled else _user_action(user, "enable", "Enable"),
                    _user_action(user, "invite/resend", "Resend invite") if user.invited else "",
                    _user_action(
                        user,
                        "delete",
                        "Delete",
                        extra='<input type="text" name="confirm" placeholder="Type the email to confirm" />',
                        css="danger",
                    ),
                ]
            )
        rows.append(
            "<tr>"
            f"<td>{escape(user.name)}<div class=\"muted\">{escape(user.email)}</div></td>"
            f"<td>{'2FA' if user.two_factor_enabled else ''}</td>"
            f"<td>{'' if user.enabled else 'Disabled'}</td>"
            f"<td>{actions}</td>"
            "</tr>"
        )
    if not rows:
        return '<p class="muted">No users.</p>'
    return "<table><thead><tr><th>User</th><th></th><th></th><th>Actions</th></tr></thead><tbody>" + "".join(rows) + "</tbody></table>"


def render_page(*, notice: str, users: str, config: str, bindings: list) -> str:
    # "</" would end the script block early.
    bindings_json = json.dumps(bindings).replace("</", "<\\/")
    return PANEL_PAGE.substitute(notice=notice, users=users, config=config, bindings=bindings_json)
