"""Small HAR documents shaped like what har-export-trigger hands back"""

import copy


def make_log(url="https://example.com/", page_id="page_1",
             mime_types=("text/html; charset=utf-8", "image/png", "application/javascript")):
    entries = []
    for i, mime in enumerate(mime_types):
        entries.append({
            "pageref": page_id,
            "request": {"method": "GET", "url": f"{url}asset-{i}"},
            "response": {
                "status": 200,
                "content": {"size": 10, "mimeType": mime, "text": f"body-{i}"},
            },
        })
    return {
        "version": "1.2",
        "creator": {"name": "Firefox", "version": "120.0"},
        "pages": [{"id": page_id, "title": url, "pageTimings": {}}],
        "entries": entries,
    }


def export_result(url="https://example.com/", wrapped=True, **kwargs):
    """Callback value of GET_HAR_SCRIPT for a successful export"""
    log = make_log(url=url, **kwargs)
    return {"har": {"log": log} if wrapped else log}


def fresh(value):
    return copy.deepcopy(value)
