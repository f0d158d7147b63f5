"""Shared test fixtures for all test modules."""

import itertools
import json
import os
import shlex
import stat
import sys
from pathlib import Path

import httpx
import pytest
import yaml

from esa_cli.models.config import EsaConfig


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """
    Point Path.home() at a temporary directory and clear esa-cli environment.

    Keeps log files, the default config path and the default scratch file
    out of the real home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", lambda: home)
    for name in ("ESA_TEAM_ID", "ESA_ACCESS_TOKEN", "EDITOR", "ESA_CLI_SCRATCH_DIR", "ESA_CLI_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return home


def _writer(screen_name: str, myself: bool = False) -> dict:
    return {
        "myself": myself,
        "name": screen_name.capitalize(),
        "screen_name": screen_name,
        "icon": f"https://img.esa.io/uploads/{screen_name}.png",
    }


@pytest.fixture
def post_json():
    """Factory for a post as returned by GET /teams/{team}/posts/{number}."""

    def make(**overrides) -> dict:
        data = {
            "number": 42,
            "name": "My Title",
            "full_name": "dev/notes/My Title #api #日本語",
            "wip": True,
            "body_md": "line one\nline two",
            "body_html": "<p>line one\nline two</p>",
            "created_at": "2024-05-01T10:00:00+09:00",
            "updated_at": "2024-05-02T11:30:00+09:00",
            "message": "Update post.",
            "url": "https://myteam.esa.io/posts/42",
            "tags": ["api", "日本語"],
            "category": "dev/notes",
            "revision_number": 7,
            "created_by": _writer("alice", myself=True),
            "updated_by": _writer("bob"),
            "kind": "flow",
            "comments_count": 1,
            "tasks_count": 2,
            "done_tasks_count": 1,
            "stargazers_count": 3,
            "watchers_count": 4,
            "star": False,
            "watch": True,
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def team_json() -> dict:
    return {
        "name": "myteam",
        "privacy": "closed",
        "description": "Our notes",
        "icon": "https://img.esa.io/uploads/team.png",
        "url": "https://myteam.esa.io/",
    }


@pytest.fixture
def esa_config() -> EsaConfig:
    return EsaConfig(team="myteam", access_token="secret-token")


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays routed responses.

    Routes map (method, path) to a response or a callable taking the request.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, status_code: int = 200, json_body=None, response=None):
        if response is None:
            response = httpx.Response(status_code, json=json_body)
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not_found", "message": "Not found"})
        if callable(route):
            return route(request)
        return route

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
def api():
    """Recording handler for httpx.MockTransport."""
    return RecordingHandler()


@pytest.fixture
def transport(api):
    return httpx.MockTransport(api)


@pytest.fixture
def make_editor(tmp_path):
    """
    Factory for stub editor commands.

    Each stub is a small Python script run through sys.executable that
    receives the scratch file path as its only argument.

    Args (of the returned factory):
        new_text: Replace the file content with this text
        append: Append this text to the file
        exit_code: Exit status of the stub editor

    Returns:
        Editor command string suitable for EditingSession / editor.command
    """
    counter = itertools.count()

    def make(new_text=None, append=None, exit_code: int = 0) -> str:
        script = tmp_path / f"editor_{next(counter)}.py"
        script.write_text(
            "import sys\n"
            f"new_text = {new_text!r}\n"
            f"append = {append!r}\n"
            "path = sys.argv[1]\n"
            "if new_text is not None:\n"
            "    with open(path, 'w', encoding='utf-8', newline='') as f:\n"
            "        f.write(new_text)\n"
            "if append is not None:\n"
            "    with open(path, 'a', encoding='utf-8', newline='') as f:\n"
            "        f.write(append)\n"
            f"sys.exit({exit_code})\n",
            encoding="utf-8",
        )
        return shlex.join([sys.executable, str(script)])

    return make


@pytest.fixture
def write_config(tmp_path):
    """Factory writing a config.yaml with 600 permissions."""

    def write(data: dict, name: str = "config.yaml") -> Path:
        config_file = tmp_path / name
        config_file.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
        os.chmod(config_file, stat.S_IRUSR | stat.S_IWUSR)
        return config_file

    return write
