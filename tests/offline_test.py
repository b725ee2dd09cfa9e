"""
Offline test: Mocks GitHub and PokeAPI responses so we can run the whole
command line without real network calls.

Run:  pytest -q
"""
import io
import json
from unittest.mock import patch

from lxml import etree
from PIL import Image

from trainer_card import cli, config

USER_JSON = {
    "login": "octocat",
    "avatar_url": "https://avatars.githubusercontent.com/u/583231?v=4",
    "public_repos": 8,
    "followers": 42,
    "created_at": "2011-01-25T18:44:36Z",
}
EVENTS_JSON = [
    {"type": "PushEvent", "payload": {"commits": [{}, {}]}},
    {"type": "WatchEvent"},
]
SPECIES_JSON = {
    "id": 146,
    "name": "moltres",
    "sprites": {"front_default": "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/146.png"},
    "types": [{"slot": 1, "type": {"name": "fire"}}, {"slot": 2, "type": {"name": "flying"}}],
}


def png_bytes():
    buf = io.BytesIO()
    Image.new("RGBA", (16, 16), (10, 200, 10, 255)).save(buf, format="PNG")
    return buf.getvalue()


class FakeResp:
    def __init__(self, payload=None, status_code=200, content=None):
        self.status_code = status_code
        self.text = json.dumps(payload)
        self.content = content if content is not None else self.text.encode("utf-8")
        self.headers = {"content-type": "application/json"}

    def json(self):
        return json.loads(self.text)


def fake_get(url, headers=None, timeout=None):
    # order of checks matters
    if url.endswith("/users/octocat/events/public"):
        return FakeResp(EVENTS_JSON)
    if url.endswith("/users/octocat"):
        return FakeResp(USER_JSON)
    if url.endswith("/pokemon/146"):
        return FakeResp(SPECIES_JSON)
    if url.startswith("https://avatars.") or url.endswith("146.png"):
        return FakeResp(content=png_bytes())
    return FakeResp({"message": "Not Found"}, status_code=404)


@patch("requests.get", side_effect=fake_get)
def test_offline_card(mock_get, tmp_path):
    assert cli.main(["octocat", "--out", str(tmp_path), "--svg", "--strict"]) == 0

    png = tmp_path / "octocat-pokemon-card.png"
    svg = tmp_path / "octocat-pokemon-card.svg"
    assert png.exists() and svg.exists()
    assert Image.open(png).size == (720, 440)

    root = etree.fromstring(svg.read_bytes())
    expected = {"login": "octocat", "species_name": "Moltres", "attack_data": "2",
                "defense_data": "8", "charm_data": "42"}
    for stat_id, value in expected.items():
        el = root.find(f".//*[@id='{stat_id}']")
        assert el is not None, f"Missing element id={stat_id}"
        assert el.text == value, f"Wrong value for {stat_id}"
    assert root.find(".//*[@id='hp_data']").text != "—"
    assert all(href.startswith("data:image/png") for href in
               (img.get("href") for img in root.iter("{http://www.w3.org/2000/svg}image")))
    # profile, events, species and two images: one request each
    assert mock_get.call_count == 5


@patch("requests.get", side_effect=fake_get)
def test_offline_unknown_user_still_renders(mock_get, tmp_path, capsys):
    assert cli.main(["nobody-here", "--out", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "Trainer: Unknown" in out
    assert "[WARN]" in out
    assert (tmp_path / "nobody-here-pokemon-card.png").exists()


def test_missing_username(monkeypatch, capsys):
    monkeypatch.setattr(config, "USER_NAME", "")
    assert cli.main([]) == 1
    assert "Cannot infer username" in capsys.readouterr().err


@patch("requests.get", side_effect=fake_get)
def test_offline_username_with_slash_stays_in_out_dir(mock_get, tmp_path):
    out = tmp_path / "out"
    assert cli.main(["a/b", "--out", str(out), "--svg"]) == 0
    assert (out / "a_b-pokemon-card.png").exists()
    assert (out / "a_b-pokemon-card.svg").exists()


@patch("requests.get", side_effect=fake_get)
def test_offline_unwritable_out_dir(mock_get, tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    assert cli.main(["octocat", "--out", str(blocker), "--svg"]) == 1
    assert "export failed" in capsys.readouterr().err
