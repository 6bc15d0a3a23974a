"""Platform video category table."""

from typing import Any, Dict, Optional

# Platform category IDs
CATEGORY_NAMES: Dict[str, str] = {
    "1": "Film & Animation",
    "2": "Autos & Vehicles",
    "10": "Music",
    "15": "Pets & Animals",
    "17": "Sports",
    "18": "Short Movies",
    "19": "Travel & Events",
    "20": "Gaming",
    "21": "Videoblogging",
    "22": "People & Blogs",
    "23": "Comedy",
    "24": "Entertainment",
    "25": "News & Politics",
    "26": "Howto & Style",
    "27": "Education",
    "28": "Science & Technology",
    "29": "Nonprofits & Activism",
    "30": "Movies",
    "31": "Anime/Animation",
    "32": "Action/Adventure",
    "33": "Classics",
    "35": "Documentary",
    "36": "Drama",
    "37": "Family",
    "38": "Foreign",
    "39": "Horror",
    "40": "Sci-Fi/Fantasy",
    "41": "Thriller",
    "42": "Shorts",
    "43": "Shows",
    "44": "Trailers",
}
DEFAULT_CATEGORY = "Entertainment"


def category_name(category_id: Any) -> str:
    """Platform category name for a category ID."""
    return CATEGORY_NAMES.get(str(category_id), DEFAULT_CATEGORY)


def category_id_for(name: str) -> Optional[str]:
    """Reverse lookup of a platform category ID by name (case-insensitive)."""
    wanted = name.strip().lower()
    for category_id, category in CATEGORY_NAMES.items():
        if category.lower() == wanted:
            return category_id
    return None
