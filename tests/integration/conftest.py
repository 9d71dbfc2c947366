from __future__ import annotations

import os
import socket
import subprocess
import sys
import time
from collections.abc import Iterator
from pathlib import Path
from urllib import error, parse, request

import pytest


def _pick_free_port() -> int:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return int(sock.getsockname()[1])
    except PermissionError:
        pytest.skip("Socket operations are blocked in this environment.")


def _wait_for_health(base_url: str, timeout_s: float = 20.0) -> None:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        try:
            with request.urlopen(f"{base_url}/health", timeout=1.0) as response:
                if response.status == 200:
                    return
        except Exception:  # noqa: BLE001
            time.sleep(0.2)
    raise TimeoutError(f"Server did not become healthy within {timeout_s:.1f}s")


def _start_server(
    app_path: str,
    env: dict[str, str],
    port: int,
    cwd: Path,
) -> subprocess.Popen[str]:
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        app_path,
        "--host",
        "127.0.0.1",
        "--port",
        str(port),
    ]
    return subprocess.Popen(  # noqa: S603
        cmd,
        cwd=str(cwd),
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        text=True,
    )


def _stop_server(server: subprocess.Popen[str]) -> None:
    server.terminate()
    try:
        server.wait(timeout=5)
    except subprocess.TimeoutExpired:
        server.kill()
        server.wait(timeout=5)


@pytest.fixture
def stack_urls() -> Iterator[tuple[str, str]]:
    """Start the mock backend and the web frontend pointed at it.

    Yields (backend_url, web_url).
    """
    if os.getenv("RUN_INTEGRATION_TESTS") != "1":
        pytest.skip("Set RUN_INTEGRATION_TESTS=1 to run the two-process integration tests.")

    src_dir = Path(__file__).resolve().parents[2] / "src"
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src_dir), env.get("PYTHONPATH")]))

    backend_port = _pick_free_port()
    backend_url = f"http://127.0.0.1:{backend_port}"
    backend = _start_server(
        "contentops_web.mock_backend.api:app", env=env, port=backend_port, cwd=Path.cwd()
    )
    web = None
    try:
        _wait_for_health(backend_url)

        web_port = _pick_free_port()
        web_url = f"http://127.0.0.1:{web_port}"
        web_env = dict(env)
        web_env["CONTENTOPS_API_BASE_URL"] = backend_url
        web = _start_server("contentops_web.main:app", env=web_env, port=web_port, cwd=Path.cwd())
        _wait_for_health(web_url)
        yield backend_url, web_url
    finally:
        if web is not None:
            _stop_server(web)
        _stop_server(backend)


def _headers(message) -> dict[str, str]:  # noqa: ANN001
    return {key.lower(): value for key, value in message.items()}


class _NoRedirect(request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # noqa: ANN001
        return None


def http_get_text(base_url: str, path: str) -> tuple[int, str, dict[str, str]]:
    req = request.Request(url=f"{base_url}{path}", method="GET")
    try:
        with request.urlopen(req, timeout=20.0) as response:
            return response.status, response.read().decode("utf-8"), _headers(response.headers)
    except error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8"), _headers(exc.headers)


def http_post_form(
    base_url: str,
    path: str,
    fields: dict[str, str],
) -> tuple[int, str, dict[str, str]]:
    req = request.Request(
        url=f"{base_url}{path}",
        method="POST",
        data=parse.urlencode(fields).encode("utf-8"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    opener = request.build_opener(_NoRedirect)
    try:
        with opener.open(req, timeout=60.0) as response:
            return response.status, response.read().decode("utf-8"), _headers(response.headers)
    except error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8"), _headers(exc.headers)


@pytest.fixture
def get_text():
    return http_get_text


@pytest.fixture
def post_form():
    return http_post_form
