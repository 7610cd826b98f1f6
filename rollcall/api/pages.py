"""HTML pages: the submission form and the live attendance table."""
import json
from html import escape
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from rollcall.config import settings
from rollcall.services.rendering import TableSink
from rollcall.services.subjects import ALL_SUBJECTS_TAB, SUBJECTS, TAB_LABELS, TabSelection, select_tab

router = APIRouter(tags=["pages"])


def _layout(title: str, body: str) -> str:
    firebase_config = json.dumps(settings.firebase_web_config()).replace("</", "<\\/")
    vapid_key = json.dumps(settings.firebase_vapid_key if settings.fcm_enabled else "")
    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{escape(title)} | {escape(settings.app_name)}</title>
<link rel="stylesheet" href="/static/rollcall.css">
</head>
<body>
<header>
  <h1>{escape(settings.app_name)}</h1>
  <nav><a href="/">Mark attendance</a> <a href="/attendance">Attendance</a></nav>
  <div id="user-container">
    <div hidden id="user-pic"></div>
    <div hidden id="user-name"></div>
    <button hidden id="sign-out">Sign-out</button>
    <button id="sign-in">Sign-in with Google</button>
  </div>
</header>
<main>
{body}
</main>
<div id="must-signin-snackbar" class="snackbar" hidden></div>
<script>window.FIREBASE_CONFIG = {firebase_config}; window.FCM_VAPID_KEY = {vapid_key};</script>
<script type="module" src="/static/rollcall.js"></script>
</body>
</html>"""


def render_form_page() -> str:
    options = "".join(
        f'<option value="{escape(value)}">{escape(label)}</option>' for value, label in SUBJECTS
    )
    body = f"""<form id="message-form">
  <label for="message">Subject</label>
  <select id="message" name="subject" required>
    <option value="">Select subject</option>
    {options}
  </select>
  <label for="rollno">Roll No</label>
  <input type="text" id="rollno" name="rollno" required>
  <label for="studentName">Name</label>
  <input type="text" id="studentName" name="name" required>
  <button id="submit" type="submit" disabled>Submit</button>
</form>"""
    return _layout("Mark attendance", body)


def _hidden_rows_css(selection: TabSelection) -> str:
    """Hide every row whose subject the active tab does not show, unlisted subjects included."""
    if selection.active == ALL_SUBJECTS_TAB:
        return ""
    keep = "".join(f':not([data-subject="{cls}"])' for cls in selection.shown)
    return f"tr[data-subject]{keep} {{ display: none; }}"


def render_table_page(selection: TabSelection) -> str:
    tabs = "".join(
        f'<a id="{escape(tab)}" class="tab{" active" if active else ""}" '
        f'href="/attendance?tab={quote(tab, safe="")}">{escape(TAB_LABELS.get(tab, tab))}</a>'
        for tab, active in selection.tabs.items()
    )
    hidden = _hidden_rows_css(selection)
    body = f"""<style>{hidden}</style>
<nav class="tabs">{tabs}</nav>
<div id="messages">
  <table id="message-table" data-live="/ws/attendance">{TableSink.header_html}</table>
</div>"""
    return _layout("Attendance", body)


@router.get("/", response_class=HTMLResponse)
async def form_page():
    return render_form_page()


@router.get("/attendance", response_class=HTMLResponse)
async def table_page(tab: str = ALL_SUBJECTS_TAB):
    try:
        selection = select_tab(tab)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown subject tab: {tab}")
    return render_table_page(selection)
