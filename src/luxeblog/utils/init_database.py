"""
Default taxonomy seeding.

On startup (when `SEED_DEFAULT_TAXONOMY` is enabled) the four house categories and seven tags
are created through the taxonomy find-or-create path, so running the seed repeatedly, or
alongside live traffic, never produces duplicates.
"""

from typing import Dict, List, Optional

from luxeblog.managers.logging_manager import get_logger
from luxeblog.services.taxonomy_service import TaxonomyService, taxonomy_service

logger = get_logger(prefix="[DB_SEED]")

DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {
        "name": "Lifestyle",
        "description": "Articles about luxury living and sophisticated lifestyle choices",
        "image": "/images/category-lifestyle.jpg",
    },
    {
        "name": "Travel",
        "description": "Discover extraordinary destinations and luxury travel experiences",
        "image": "/images/category-travel.jpg",
    },
    {
        "name": "Wellness",
        "description": "Holistic approaches to health, mindfulness, and wellbeing",
        "image": "/images/category-wellness.jpg",
    },
    {
        "name": "Design",
        "description": "Timeless aesthetics and sophisticated design principles",
        "image": "/images/category-design.jpg",
    },
]

DEFAULT_TAGS: List[Dict[str, str]] = [
    {"name": "Luxury", "description": "Premium and high-end content"},
    {"name": "Minimalism", "description": "Simple and refined living"},
    {"name": "Interior Design", "description": "Home and space design"},
    {"name": "Fine Dining", "description": "Culinary experiences and gastronomy"},
    {"name": "Mindfulness", "description": "Mental wellness and meditation"},
    {"name": "Fashion", "description": "Style and fashion trends"},
    {"name": "Art", "description": "Art and cultural experiences"},
]


async def seed_default_taxonomy(service: Optional[TaxonomyService] = None) -> Dict[str, int]:
    """
    Ensure the default categories and tags exist.

    Returns:
        Dict[str, int]: Number of categories and tags present after seeding.
    """
    service = service or taxonomy_service

    for category in DEFAULT_CATEGORIES:
        await service.find_or_create("category", category["name"], defaults=dict(category))
    for tag in DEFAULT_TAGS:
        await service.find_or_create("tag", tag["name"], defaults=dict(tag))

    summary = {"categories": len(DEFAULT_CATEGORIES), "tags": len(DEFAULT_TAGS)}
    logger.info("Default taxonomy ensured: %d categories, %d tags", summary["categories"], summary["tags"])
    return summary
