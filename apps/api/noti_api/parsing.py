from __future__ import annotations

from dataclasses import dataclass

import yaml


@dataclass(frozen=True)
class FrontmatterParse:
    frontmatter: dict
    body: str
    error: str | None
    # Raw text between the fences and after the closing one, set whenever a fence pair exists.
    yaml_block: str | None = None
    after_fence: str | None = None


def parse_frontmatter(markdown: str) -> FrontmatterParse:
    if not markdown.startswith("---"):
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    first_newline = markdown.find("\n")
    if first_newline == -1:
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    first_line = markdown[:first_newline].rstrip("\r")
    if first_line != "---":
        return FrontmatterParse(frontmatter={}, body=markdown, error=None)

    # Find a subsequent line that is exactly `---`
    search_from = first_newline + 1
    while True:
        next_newline = markdown.find("\n", search_from)
        if next_newline == -1:
            # Closing fence on the last line without a trailing newline.
            if markdown[search_from:].rstrip("\r") != "---":
                return FrontmatterParse(frontmatter={}, body=markdown, error=None)
            next_newline = len(markdown)
        line = markdown[search_from:next_newline].rstrip("\r")
        if line == "---":
            yaml_block = markdown[first_newline + 1 : search_from]
            body = markdown[next_newline + 1 :]
            try:
                parsed = yaml.safe_load(yaml_block) or {}
            except yaml.YAMLError:
                return FrontmatterParse(
                    frontmatter={}, body=markdown, error="frontmatter_yaml_error", yaml_block=yaml_block, after_fence=body
                )
            if not isinstance(parsed, dict):
                return FrontmatterParse(
                    frontmatter={}, body=markdown, error="frontmatter_not_mapping", yaml_block=yaml_block, after_fence=body
                )
            return FrontmatterParse(frontmatter=parsed, body=body, error=None, yaml_block=yaml_block, after_fence=body)
        search_from = next_newline + 1


def normalize_tag(tag: str) -> str:
    return tag.strip().lstrip("#").strip()


def normalize_tags(values: object) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raw = [values]
    elif isinstance(values, (list, tuple, set)):
        raw = [v for v in values if isinstance(v, (str, int, float)) and not isinstance(v, bool)]
    else:
        return []
    seen: set[str] = set()
    out: list[str] = []
    for value in raw:
        tag = normalize_tag(str(value))
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def extract_frontmatter_tags(frontmatter: dict) -> list[str]:
    return normalize_tags(frontmatter.get("tags"))


def extract_title(frontmatter: dict, fallback: str) -> str:
    title = frontmatter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    if isinstance(title, (int, float)) and not isinstance(title, bool):
        return str(title)
    return fallback


def render_markdown_with_frontmatter(frontmatter: dict, body: str) -> str:
    if body and not body.endswith("\n"):
        body += "\n"
    if not frontmatter:
        return body
    yaml_text = yaml.safe_dump(
        frontmatter,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    ).strip("\n")
    return f"---\n{yaml_text}\n---\n{body}"
