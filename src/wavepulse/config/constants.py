"""Fixed algorithm constants: stopwords, search bounds, routing keyword lists."""

from __future__ import annotations

STOPWORDS = frozenset(
    {
        "the", "a", "an", "is", "are", "how", "what", "where", "why",
        "does", "do", "to", "in", "on", "at", "for", "of", "with",
    }
)

MIN_KEYWORD_LENGTH = 3

SOURCE_EXTENSIONS = ("*.ts", "*.tsx", "*.js")
DECLARATION_EXTENSIONS = ("*.ts", "*.tsx")

# File discovery bounds
NAME_MATCH_LIMIT = 20
CONTENT_MATCH_LIMIT = 20
SYMBOL_MATCH_LIMIT = 10
DEPENDENCY_SEED_FILES = 5
IMPORTS_PER_FILE = 10
NAME_PATTERN_KEYWORDS = 5
MAX_DISCOVERED_FILES = 30

# Code analysis bounds
MAX_ANALYZED_FILES = 10
MAX_SNIPPETS = 5
SNIPPET_LINES_BEFORE = 5
SNIPPET_LINES_AFTER = 10
SNIPPET_RELEVANCE_THRESHOLD = 0.5

# Response validation
MIN_RESPONSE_LENGTH = 100
CITATION_REQUIRED_LENGTH = 500
ERROR_PENALTY = 0.2
WARNING_PENALTY = 0.05

# Query router fallback keywords, matched against the lowercased message
UI_STATE_KEYWORDS = (
    "what happens when",
    "what happens if",
    "what does",
    "how does",
    "when i tap",
    "when i click",
    "when i select",
    "selected widget",
    "widget properties",
    "widget styles",
    "event handler",
    "on tap",
    "on click",
    "show me",
    "tell me about",
    "explain",
    "what is the",
)

CODEBASE_KEYWORDS = (
    "how does",
    "why does",
    "what is",
    "where is",
    "basecomponent",
    "wmbutton",
    "wavemaker",
    "codebase",
    "style definition",
    "class name",
    "rnstyleselector",
    "transpiler",
    "transformer",
    "codegen",
    "runtime",
)

# Query analyzer vocabularies
VALID_INTENTS = ("how", "why", "what", "where", "compare", "general")
VALID_BASE_PATHS = ("runtime", "codegen", "both")
VALID_DEPTHS = ("shallow", "deep", "comprehensive")
VALID_DOMAINS = (
    "component", "service", "binding", "variable", "style",
    "styledefinition", "transpiler", "transformer", "fragment",
    "base", "app", "parser", "formatter", "generation", "watcher", "memo", "general",
)
CODEGEN_DOMAINS = frozenset({"styledefinition", "transpiler", "transformer", "generation", "parser"})
RUNTIME_DOMAINS = frozenset({"component", "service", "binding", "variable", "watcher"})
DEFAULT_SUB_AGENT = "BaseAgent"

# Polling bridge request kinds
REQUEST_KIND_EVAL = "eval_expression"
REQUEST_KIND_SELECT_WIDGET = "select_widget"
