"""
# API Routes

All routers are mounted under `/api` by `luxeblog.main`.

- **`blog`**: Posts and comments
- **`blog_taxonomy`**: Categories and tags
- **`main`**: Health check
- **`auth.dependencies`**: Bearer token to `Principal`
"""
