"""
Shared fixtures: a scripted fake of the portal on httpx.MockTransport.
"""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

BASE_URL = "https://mano.labas.lt"
LOGIN_PATH = "/prisijungimo_patikrinimas"
MARKER = "SMS išsiųsta"

HOME_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Mano Labas</title></head>
<body>
  <form name="sms_submit" method="post">
    <input type="text" id="sms_submit_recipientNumber" name="sms_submit[recipientNumber]" />
    <textarea id="sms_submit_textMessage" name="sms_submit[textMessage]"></textarea>
    <input type="hidden" id="sms_submit__token" name="sms_submit[_token]" value="{token}" class="form-control input-material" />
  </form>
</body>
</html>"""


class FakePortal:
    """
    Serves login, home page and SMS form.

    Each login issues cookie sessN and token tokN, N counting logins from 1.
    `confirm(n)` decides whether the n-th submission (from 1) is confirmed.
    """

    def __init__(self, confirm=None, set_cookie=True, home_html=None, delay=0.0):
        self.confirm = confirm or (lambda n: True)
        self.set_cookie = set_cookie
        self.home_html = home_html
        self.delay = delay

        self.logins = []
        self.home_requests = []
        self.submissions = []
        self.issued = []

        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def login_count(self):
        return len(self.logins)

    def transport(self):
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so concurrent callers get a chance to interleave
            await asyncio.sleep(self.delay)
            return self.route(request)
        finally:
            self.in_flight -= 1

    def route(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path == LOGIN_PATH:
            return self.login(request)
        if request.method == "GET" and path == "/":
            return self.home(request)
        if request.method == "POST" and path == "/":
            return self.submit(request)
        return httpx.Response(404, text="not found")

    def login(self, request):
        self.logins.append(form(request))
        n = len(self.logins)
        if not self.set_cookie:
            return httpx.Response(200, html="<p>Neteisingi duomenys</p>")
        self.issued.append((f"sess{n}", f"tok{n}"))
        return httpx.Response(
            200,
            headers={"set-cookie": f"PHPSESSID=sess{n}; Path=/; HttpOnly"},
            html="<p>ok</p>",
        )

    def home(self, request):
        self.home_requests.append(request.headers.get("cookie"))
        if self.home_html is not None:
            return httpx.Response(200, html=self.home_html)
        return httpx.Response(200, html=HOME_TEMPLATE.format(token=f"tok{len(self.logins)}"))

    def submit(self, request):
        fields = form(request)
        fields["cookie"] = request.headers.get("cookie")
        self.submissions.append(fields)
        if self.confirm(len(self.submissions)):
            return httpx.Response(200, html=f"<div class='alert'>{MARKER}</div>")
        return httpx.Response(200, html="<div class='alert'>Klaida</div>")


def form(request: httpx.Request) -> dict:
    """Decodes a urlencoded body into single values."""
    return {k: v[0] for k, v in parse_qs(request.content.decode("utf-8"), keep_blank_values=True).items()}


@pytest.fixture
def portal():
    return FakePortal()


@pytest.fixture
def make_client():
    """Builds LabasClients wired to a fake portal."""
    from labas_sms.services.sms_client import LabasClient

    def factory(portal, username="860000000", **kwargs):
        http = httpx.AsyncClient(transport=portal.transport())
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("login_route", LOGIN_PATH)
        kwargs.setdefault("success_marker", MARKER)
        kwargs.setdefault("token_field", "sms_submit[_token]")
        kwargs.setdefault("session_cookie", "PHPSESSID")
        kwargs.setdefault("attempts", 2)
        return LabasClient(username, "secret", http_client=http, **kwargs)

    return factory
