"""
Clearly labelled filler served when every news source fails.

These articles are never presented as sourced news: they carry the
``emergency-content`` provenance and the aggregation result is flagged.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..models.schemas import Article, EMERGENCY_PROVENANCE

EMERGENCY_SOURCE = "AI Intelligence Network"

_TEMPLATES = (
    {
        "slug": "ai-revolution",
        "title": "AI Revolution Continues: Latest Developments in Artificial Intelligence",
        "description": (
            "Artificial intelligence continues to transform industries worldwide with breakthrough "
            "innovations in machine learning, natural language processing, and computer vision."
        ),
        "author": "AI Research Team",
        "age_hours": 0,
    },
    {
        "slug": "ml-breakthroughs",
        "title": "Machine Learning Breakthroughs Drive Innovation Across Sectors",
        "description": (
            "Recent advances in machine learning algorithms are enabling new applications in "
            "healthcare, finance, transportation, and entertainment industries."
        ),
        "author": "ML Research Division",
        "age_hours": 1,
    },
    {
        "slug": "ai-future",
        "title": "Future of AI: Predictions and Trends for Next Decade",
        "description": (
            "Industry experts share insights on the future trajectory of artificial intelligence, "
            "including emerging technologies and potential societal impacts."
        ),
        "author": "Future Tech Analysts",
        "age_hours": 2,
    },
)


def emergency_articles(region: str, now: Optional[datetime] = None) -> List[Article]:
    now = now or datetime.now(timezone.utc)
    return [
        Article(
            id=f"{EMERGENCY_PROVENANCE}-{index}",
            title=template["title"],
            description=template["description"],
            url=f"https://example.com/{template['slug']}",
            source=EMERGENCY_SOURCE,
            author=template["author"],
            published_at=now - timedelta(hours=template["age_hours"]),
            country=region,
            category="ai",
            provenance=EMERGENCY_PROVENANCE,
        )
        for index, template in enumerate(_TEMPLATES, start=1)
    ]
