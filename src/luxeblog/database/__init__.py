"""
# Database Package

The `luxeblog.database` package is the **persistence layer** of the LuxeBlog API, built on
**Motor** (async MongoDB driver).

- **`manager`**: The `DatabaseManager` singleton that owns the connection pool.
- **`blog_indexes`**: Unique and lookup indexes for posts, categories, tags and comments.

```python
from luxeblog.database import db_manager

await db_manager.connect()
posts = db_manager.get_collection("blog_posts")
```

Attributes:
    db_manager (DatabaseManager): The global singleton instance for database access.
    DatabaseManager (class): The main manager class (exported for type hinting).
"""

from luxeblog.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]
