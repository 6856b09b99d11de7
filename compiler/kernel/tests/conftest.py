"""
Compiler kernel test configuration.

Shared fixtures: a realistic two-page landing site in the editor's raw JSON
form, its parsed pages, and project metadata. Kernel tests use
MemoryBundleStorage; Postgres tests skip themselves when DATABASE_URL is
not set.
"""

import pytest

from compiler.kernel.elements import parse_pages
from compiler.kernel.types import ProjectMeta


def landing_home() -> list[dict]:
    return [
        {
            "id": "body",
            "type": "__body",
            "name": "Body",
            "styles": {"backgroundColor": "white"},
            "content": [
                {
                    "id": "hero",
                    "type": "container",
                    "name": "Hero",
                    "styles": {
                        "display": "flex",
                        "flexDirection": "column",
                        "padding": "24px",
                        "cursor": "pointer",
                    },
                    "content": [
                        {
                            "id": "title",
                            "type": "heading",
                            "name": "Title",
                            "styles": {"color": "#111"},
                            "content": {"innerText": "Grow faster", "level": 1},
                        },
                        {
                            "id": "intro",
                            "type": "text",
                            "name": "Intro",
                            "styles": {},
                            "content": {"innerText": "Launch pages in minutes."},
                        },
                        {
                            "id": "cta",
                            "type": "button",
                            "name": "CTA",
                            "styles": {"backgroundColor": "#2563eb"},
                            "content": {"innerText": "Start now", "href": "/signup"},
                        },
                    ],
                },
                {"id": "rule", "type": "divider", "name": "Divider", "styles": {}, "content": {}},
                {
                    "id": "shot",
                    "type": "image",
                    "name": "Screenshot",
                    "styles": {"width": "100%"},
                    "content": {"src": "https://cdn.example.com/shot.png", "alt": "Product screenshot"},
                },
            ],
        }
    ]


def landing_pricing() -> list[dict]:
    return [
        {
            "id": "pricing-body",
            "type": "__body",
            "name": "Body",
            "styles": {},
            "content": [
                {
                    "id": "plans",
                    "type": "heading",
                    "name": "Plans",
                    "styles": {},
                    "content": {"innerText": "Plans", "level": 2},
                },
                {
                    "id": "contact",
                    "type": "link",
                    "name": "Contact",
                    "styles": {"textDecoration": "underline"},
                    "content": {"innerText": "Talk to sales", "href": "mailto:sales@example.com"},
                },
                {
                    "id": "demo",
                    "type": "video",
                    "name": "Demo",
                    "styles": {},
                    "content": {"src": "https://cdn.example.com/demo.mp4"},
                },
            ],
        }
    ]


@pytest.fixture
def raw_pages() -> list[dict]:
    return [
        {"id": "page_home", "name": "Home", "pathName": "", "order": 0, "content": landing_home()},
        {"id": "page_pricing", "name": "Pricing", "pathName": "/pricing", "order": 1, "content": landing_pricing()},
    ]


@pytest.fixture
def pages(raw_pages):
    parsed, _ = parse_pages(raw_pages)
    return parsed


@pytest.fixture
def meta() -> ProjectMeta:
    return ProjectMeta(name="Acme Launch", description="Landing site for Acme.")
