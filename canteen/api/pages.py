"""
Browser pages. Navigation targets only; data comes from the JSON API.
"""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from canteen.config import get_settings

settings = get_settings()

router = APIRouter()

PAGE_TEMPLATE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>{title} - {app}</title></head>
<body data-page="{page}">
<h1>{title}</h1>
{body}
</body>
</html>
"""

LOGIN_FORM = """<form id="login">
<label>Email <input name="email" type="email" required></label>
<label>Password <input name="password" type="password" required></label>
<button type="submit">Sign in</button>
</form>
<p id="login-error" hidden></p>
<script>
document.getElementById("login").addEventListener("submit", async (event) => {
  event.preventDefault();
  const form = event.target;
  const response = await fetch("/api/auth/login", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify({email: form.email.value, password: form.password.value}),
  });
  if (response.ok) {
    const target = new URLSearchParams(window.location.search).get("redirect") || "";
    // Same-site paths only
    window.location.assign(target.startsWith("/") && !target.startsWith("//") ? target : "/");
    return;
  }
  const error = document.getElementById("login-error");
  error.textContent = (await response.json()).error;
  error.hidden = false;
});
</script>"""


def _page(page: str, title: str, body: str = "") -> HTMLResponse:
    return HTMLResponse(PAGE_TEMPLATE.format(page=page, title=title, app=settings.APP_NAME, body=body))


@router.get("/login", response_class=HTMLResponse)
async def login_page():
    return _page("login", "Sign in", LOGIN_FORM)


@router.get("/", response_class=HTMLResponse)
async def employee_page():
    return _page("employee", "My meals")


@router.get("/admin", response_class=HTMLResponse)
async def admin_page():
    return _page("admin", "Canteen administration")
