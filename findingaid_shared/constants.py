"""Shared finding-aid constants used by the parser and the server."""

# Data files
DATA_EXTENSION = ".geojson"
PATH_CHUNK_SIZE = 3

# Qualifier keys
QUALIFIER_ALT = "alt"

# Catalog record fields
DEFAULT_KEY_FIELD = "id"
REPO_NAME_FIELD = "repo_name"

# URI template variable bound to the repository name
TEMPLATE_REPO_VARIABLE = "repo"
