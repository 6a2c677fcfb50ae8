"""
# Data Models Package

Pydantic models for the blog content graph.

- **`blog_models`**: Posts, categories, tags, comments (with the guest/user author union),
  request/response models and the `ApiResponse` envelope.

Models follow a request/response split:
- `*Request`: Input validation and sanitization
- `*Response`: Output serialization (guest emails never leave the store)
"""
