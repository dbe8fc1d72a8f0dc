import re

# Entities an author escapes to keep diagram arrows out of HTML parsing.
ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),  # last, so "&amp;lt;" decodes to "&lt;" and not "<"
)


def fence_pattern(language: str) -> re.Pattern:
    return re.compile(
        rf"(?ms)^(?P<indent>[ \t]*)(?P<fence>`{{3,}}|~{{3,}})[ \t]*{re.escape(language)}[ \t]*(?:\{{[^\n]*\}})?[ \t]*\n"
        rf"(?P<body>.*?)"
        rf"^(?P=indent)(?P=fence)[ \t]*$"
    )


def decode_entities(text: str) -> str:
    for entity, char in ENTITIES:
        text = text.replace(entity, char)
    return text


def render_block(source: str, class_name: str = "mermaid") -> str:
    return f'<div class="{class_name}">\n{decode_entities(source).strip()}\n</div>'


def replace_fences(markdown: str, language: str = "mermaid", class_name: str = "mermaid") -> str:
    """Replace every ``` fence tagged `language` with its wrapper element.

    Fences in any other language are left exactly as written.
    """
    pattern = fence_pattern(language)

    def replacer(match: re.Match) -> str:
        indent = match.group("indent")
        block = render_block(match.group("body"), class_name)
        if not indent:
            return block
        return "\n".join(f"{indent}{line}" if line else "" for line in block.split("\n"))

    return pattern.sub(replacer, markdown)


def fence_format(source, language, class_name, options, md, **kwargs):
    """Custom fence formatter with the pymdownx.superfences signature."""
    return render_block(source, class_name or language)
