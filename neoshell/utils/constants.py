"""Constants used throughout the neoshell package."""

# Statement boundaries
TERMINATOR = ';'
ESCAPE_PREFIX = '\\'

# First fields routed to the SQL engine (compared upper-cased)
QUERY_VERBS = frozenset([
    'SELECT', 'INSERT', 'UPDATE', 'DELETE', 'CREATE', 'DROP', 'ALTER',
    'TRUNCATE', 'GRANT', 'REVOKE', 'COMMIT', 'ROLLBACK', 'SAVEPOINT',
    'BACKUP', 'MOUNT', 'WITH',
])

# Shell meta tokens
EXIT_TOKENS = ('exit', 'quit')
CLEAR_TOKEN = 'clear'
CLEAR_SCREEN = '\x1b[2J\x1b[H'

# Actor identity defaults
USER_ENV = 'NEOSHELL_USER'
PASSWORD_ENV = 'NEOSHELL_PASSWORD'
DEFAULT_USER = 'sys'
DEFAULT_PASSWORD = 'manager'

# Prompts
PROMPT_NAME = 'neoshell'
PRIMARY_PROMPT_COLOR = "\x1b[33m{user} \x1b[31m{name}»\x1b[0m "
PRIMARY_PROMPT_PLAIN = "{user} {name}» "
CONTINUATION_PROMPT_COLOR = "\x1b[31m>\x1b[0m  "
CONTINUATION_PROMPT_PLAIN = ">  "

# Output formats
SUPPORTED_OUTPUT_FORMATS = ['table', 'csv', 'json', 'jsonl']
SUPPORTED_EXPORT_FORMATS = ['csv', 'json', 'jsonl', 'xlsx']
DEFAULT_OUTPUT_FORMAT = 'table'
