"""
# Blog Content Security

HTML sanitation for user-supplied blog content, built on `bleach`.

| Input | Treatment |
|-------|-----------|
| Titles, excerpts, names, descriptions | All tags stripped (`strip_tags`) |
| Post bodies | Formatting allowlist (`sanitize_post_content`) |
| Comment bodies | `<script>` blocks removed, then a small allowlist (`sanitize_comment_content`) |

```python
from luxeblog.managers.blog_security import blog_xss_protection

clean = blog_xss_protection.sanitize_comment_content("  nice post <script>x()</script> ")
# "nice post"
```

Attributes:
    blog_xss_protection (BlogXSSProtection): Shared sanitizer instance.
"""

import re
from typing import Optional

import bleach

from luxeblog.managers.logging_manager import get_logger

logger = get_logger(prefix="[Blog Security]")

# Matches a whole <script ...> ... </script> block, tolerant of nested markup inside it
SCRIPT_BLOCK_PATTERN = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)

POST_ALLOWED_TAGS = [
    "p", "br", "strong", "em", "b", "i", "u", "code", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "blockquote", "a", "img", "hr",
    "table", "thead", "tbody", "tr", "th", "td",
]
POST_ALLOWED_ATTRIBUTES = {"a": ["href", "title", "rel"], "img": ["src", "alt", "title"]}

COMMENT_ALLOWED_TAGS = ["p", "br", "strong", "em", "code", "a"]
COMMENT_ALLOWED_ATTRIBUTES = {"a": ["href", "title", "rel"]}


class BlogXSSProtection:
    """Sanitizers for the different kinds of blog text."""

    def strip_script_blocks(self, text: str) -> str:
        """Remove complete `<script>...</script>` blocks, including their body."""
        return SCRIPT_BLOCK_PATTERN.sub("", text)

    def strip_tags(self, text: Optional[str]) -> Optional[str]:
        """Remove every HTML tag, keeping only text, and trim whitespace."""
        if text is None:
            return None
        return bleach.clean(self.strip_script_blocks(text), tags=[], strip=True).strip()

    def sanitize_post_content(self, content: str) -> str:
        return bleach.clean(
            self.strip_script_blocks(content),
            tags=POST_ALLOWED_TAGS,
            attributes=POST_ALLOWED_ATTRIBUTES,
            strip=True,
        )

    def sanitize_comment_content(self, content: str) -> str:
        """
        Trim, drop `<script>` blocks, then clean against the comment allowlist.

        Returns an empty string when nothing but markup was submitted; the caller treats that as
        a validation failure.
        """
        without_scripts = self.strip_script_blocks(content.strip())
        if without_scripts != content.strip():
            logger.warning("Removed script block from comment content")
        return bleach.clean(
            without_scripts,
            tags=COMMENT_ALLOWED_TAGS,
            attributes=COMMENT_ALLOWED_ATTRIBUTES,
            strip=True,
        ).strip()


blog_xss_protection = BlogXSSProtection()
