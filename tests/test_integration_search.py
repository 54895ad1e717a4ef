import os

import httpx
import pytest

BASE = os.getenv("LOGOS_BASE_URL", "http://127.0.0.1:8000")


@pytest.mark.integration
def test_search_returns_john_3_16():
    r = httpx.get(f"{BASE}/api/bible/search", params={"q": "John 3:16", "version": "ESV"}, timeout=10)
    assert r.status_code == 200
    j = r.json()
    assert j['totalCount'] == 1
    assert j['results'][0]['book'] == 'John'


@pytest.mark.integration
def test_keyword_pages_report_has_more():
    r = httpx.get(f"{BASE}/api/bible/search", params={"q": "love", "version": "ESV", "limit": 5}, timeout=10)
    assert r.status_code == 200
    j = r.json()
    assert len(j['results']) == 5
    assert j['hasMore'] == (j['totalCount'] > 5)


@pytest.mark.integration
def test_versions_listed():
    r = httpx.get(f"{BASE}/api/bible/versions", timeout=10)
    assert r.status_code == 200
    assert any(v['id'] == 'ESV' for v in r.json())
