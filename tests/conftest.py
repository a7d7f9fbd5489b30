"""Test configuration and fixtures"""

import tempfile
from pathlib import Path

import pytest

from flickr_crawler.core.config import CrawlerConfig
from flickr_crawler.flickr.client import FlickrClient
from flickr_crawler.flickr.models import Collection, User

from fakes import USER_ID, FakeApi, InMemoryStore, ScriptedDownloader, make_item


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def crawler_config():
    """Every stage enabled"""
    return CrawlerConfig()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def downloader():
    return ScriptedDownloader()


@pytest.fixture
def sample_user():
    return User(user_id=USER_ID, username="someuser", realname="Some User")


@pytest.fixture
def sample_api(sample_user):
    """
    One album with items at t=10 and t=20, one loose item at t=5.
    """
    album_items = [make_item("a10", 10), make_item("a20", 20)]
    loose = make_item("u5", 5)
    album = Collection("72157600000000001", "s3cr3t", "Holidays 2019", items=album_items)

    return FakeApi(
        users=[sample_user],
        collections={USER_ID: [album]},
        items={USER_ID: [album_items[1], loose, album_items[0]]},
        usernames={"someuser": USER_ID},
    )


@pytest.fixture(autouse=True)
def reset_flickr_client():
    """Each test starts without a FlickrClient singleton"""
    FlickrClient.reset()
    yield
    FlickrClient.reset()
