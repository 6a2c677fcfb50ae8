"""
# LuxeBlog API

A **FastAPI backend for a multi-author blog**: posts, categories, tags and threaded comments with
a moderation workflow.

## Package Structure

- **`main`**: Application entry point, lifespan management and error envelope
- **`config`**: Pydantic-based configuration with environment/`.env` support
- **`database`**: MongoDB connection management and blog indexes
- **`managers`**: Content store, authorization guard, sanitizers and logging
- **`services`**: Taxonomy resolution, comment moderation and post queries
- **`routes`**: REST endpoints under `/api`

## Getting Started

```bash
pip install -e ".[test]"
uvicorn luxeblog.main:app --reload
```

## Module-Level Attributes

Attributes:
    __version__ (str): Package version. Default: `"1.0.0"`.
    settings (Settings): Re-exported global configuration singleton from `config.py`.
"""

__version__ = "1.0.0"

# Re-export commonly used objects for convenience
from luxeblog.config import settings
__description__ = "A FastAPI backend for a multi-author blog with moderated comments"
