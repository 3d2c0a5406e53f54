"""Which files the API will render inline, by extension and size."""

from __future__ import annotations

from .config import MAX_IMAGE_SIZE, MAX_TEXT_SIZE

TEXT_EXTENSIONS = frozenset(
    {
        "txt", "md", "markdown", "json", "js", "jsx", "ts", "tsx", "mjs", "cjs",
        "html", "htm", "css", "scss", "sass", "less",
        "xml", "yaml", "yml", "toml", "ini", "conf", "cfg",
        "sh", "bash", "zsh", "fish", "ps1", "bat", "cmd",
        "py", "rb", "php", "pl", "pm", "lua", "r",
        "go", "rs", "java", "kt", "kts", "scala", "clj", "cljs",
        "c", "cpp", "cc", "cxx", "h", "hpp", "hxx", "cs", "fs", "fsx",
        "swift", "mm", "m", "zig", "nim", "v", "odin",
        "sql", "graphql", "gql",
        "env", "envrc", "gitignore", "gitattributes", "dockerignore", "editorconfig",
        "dockerfile", "makefile", "cmake", "gradle", "properties",
        "log", "diff", "patch",
        "vue", "svelte", "astro",
        "ejs", "erb", "hbs", "handlebars", "mustache", "pug", "jade", "njk", "jinja", "jinja2", "twig",
    }
)

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp", "svg", "ico", "bmp", "avif"})


def viewable_type(extension: str | None, size: int) -> str | None:
    """Return ``"text"``, ``"image"`` or ``None`` when not viewable inline."""
    if not extension:
        return None
    ext = extension.lower()
    if ext in TEXT_EXTENSIONS and size <= MAX_TEXT_SIZE:
        return "text"
    if ext in IMAGE_EXTENSIONS and size <= MAX_IMAGE_SIZE:
        return "image"
    return None
