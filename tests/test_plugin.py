"""
Unit tests for `htmlvalidator.plugin`, calling the plugin the way
a host application would.
"""

from threading import Thread

from pytest import fixture, mark

from htmlvalidator.config import PluginConfigBuilder
from htmlvalidator.host import Application, Request, Response
from htmlvalidator.plugin import (
    HEADER_NAME,
    HtmlValidatorPlugin,
    Plugin,
    PluginCollection,
)

from utils import INVALID_MESSAGES, INVALID_PAGE, VALID_PAGE, FakeClient, FakeClock


@fixture
def application(tmp_path):
    return Application(debug=True, temp_path=tmp_path)


def make_plugin(force_enable=False, ignore=()):
    builder = PluginConfigBuilder()
    builder.set_force_enable(force_enable)
    for path in ignore:
        builder.add_ignore_path(path)
    client = FakeClient(results={INVALID_PAGE: INVALID_MESSAGES})
    return HtmlValidatorPlugin(builder.build(), client, FakeClock())


def html_response(content):
    return Response(content, headers={"Content-Type": "text/html; charset=utf-8"})


def test_valid(application):
    """Test that a valid page passes unchanged."""
    plugin = make_plugin()
    response = html_response(VALID_PAGE)
    assert not plugin.on_post_request(application, Request("/valid"), response)
    assert response.status_code == 200
    assert response.get_header(HEADER_NAME) == "success"
    assert response.content == VALID_PAGE

    response = html_response(VALID_PAGE)
    assert not plugin.on_post_request(application, Request("/valid"), response)
    assert response.get_header("x-html-validator-plugin") == "success; from-cache"
    assert response.content == VALID_PAGE


def test_invalid(application):
    """Test that an invalid page is replaced by an error page."""
    plugin = make_plugin()
    response = html_response(INVALID_PAGE)
    assert plugin.on_post_request(application, Request("/invalid"), response)
    assert response.status_code == 500
    assert response.get_header(HEADER_NAME) == "fail"
    assert response.content_type == "text/html; charset=utf-8"
    assert INVALID_PAGE not in response.content
    assert "<h1>HTML validation failed</h1>" in response.content

    response = html_response(INVALID_PAGE)
    assert plugin.on_post_request(application, Request("/invalid"), response)
    assert response.status_code == 500
    assert response.get_header(HEADER_NAME) == "fail; from-cache"


@mark.parametrize("force_enable", (False, True))
def test_debug_mode(tmp_path, force_enable):
    """Test that the plugin only acts in debug mode, unless forced."""
    plugin = make_plugin(force_enable=force_enable)
    application = Application(debug=False, temp_path=tmp_path)
    response = html_response(INVALID_PAGE)
    stop = plugin.on_post_request(application, Request("/invalid"), response)
    if force_enable:
        assert stop
        assert response.status_code == 500
        assert response.get_header(HEADER_NAME) == "fail"
    else:
        assert not stop
        assert response.status_code == 200
        assert response.get_header(HEADER_NAME) is None
        assert response.content == INVALID_PAGE
        assert not plugin.checker_for(application).client.calls


@mark.parametrize(
    "content, content_type, expected",
    (
        ("", "text/html", "ignored; empty-content"),
        (INVALID_PAGE, "application/json", "ignored; not-html"),
    ),
)
def test_ignored_content(application, content, content_type, expected):
    """Test that ignored responses get the header but are not changed."""
    plugin = make_plugin()
    response = Response(content, headers={"Content-Type": content_type})
    assert not plugin.on_post_request(application, Request("/"), response)
    assert response.get_header(HEADER_NAME) == expected
    assert response.content == content
    assert response.status_code == 200


def test_missing_content_type(application):
    """Test that a response without content type is not checked."""
    plugin = make_plugin()
    response = Response(INVALID_PAGE)
    assert not plugin.on_post_request(application, Request("/"), response)
    assert response.get_header(HEADER_NAME) == "ignored; not-html"


def test_ignore_path(application):
    """Test that ignored paths pass unchanged."""
    plugin = make_plugin(ignore=("legacy/",))
    response = html_response(INVALID_PAGE)
    assert not plugin.on_post_request(application, Request("/legacy/old"), response)
    assert response.get_header(HEADER_NAME) == "ignored; ignore-path=/legacy/"
    assert response.content == INVALID_PAGE


def test_cache_location(application, tmp_path):
    """Test that the cache is kept below the application's temp path."""
    plugin = make_plugin()
    plugin.on_post_request(application, Request("/"), html_response(VALID_PAGE))
    cache_dir = tmp_path / "htmlvalidator" / "html-validator-plugin"
    assert len(list(cache_dir.glob("*.json"))) == 1


def test_checker_shared_between_threads(application):
    """Test that threads serving the same application share one checker."""
    plugin = make_plugin()
    checkers = []
    threads = [
        Thread(target=lambda: checkers.append(plugin.checker_for(application)))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(checkers) == 8
    assert len(set(map(id, checkers))) == 1


def test_close(application):
    """Test that closing the plugin closes its checker service client."""
    plugin = make_plugin()
    plugin.on_post_request(application, Request("/"), html_response(VALID_PAGE))
    client = plugin.checker_for(application).client
    plugin.close()
    assert client.closed


class Recorder(Plugin):
    def __init__(self, stop=False):
        self.stop = stop
        self.seen = []
        self.closed = False

    def on_post_request(self, application, request, response):
        self.seen.append(request.path)
        return self.stop

    def close(self):
        self.closed = True


def test_collection_dispatch(application):
    """Test that plugins are called in order until one stops processing."""
    first, stopper, last = Recorder(), Recorder(stop=True), Recorder()
    plugins = PluginCollection([first, stopper, last])
    assert plugins.on_post_request(application, Request("/x"), Response())
    assert first.seen == ["/x"]
    assert stopper.seen == ["/x"]
    assert last.seen == []

    plugins.close()
    assert first.closed and stopper.closed and last.closed


def test_collection_with_validator(application):
    """Test that a failing page stops later plugins."""
    after = Recorder()
    plugins = PluginCollection([make_plugin(), after])
    response = html_response(INVALID_PAGE)
    assert plugins.on_post_request(application, Request("/"), response)
    assert response.status_code == 500
    assert after.seen == []

    response = html_response(VALID_PAGE)
    assert not plugins.on_post_request(application, Request("/ok"), response)
    assert after.seen == ["/ok"]


def test_base_plugin_does_nothing(application):
    """Test the default implementations of the plugin interface."""
    plugin = Plugin()
    response = html_response(INVALID_PAGE)
    assert not plugin.on_post_request(application, Request("/"), response)
    assert response.content == INVALID_PAGE
    plugin.close()
