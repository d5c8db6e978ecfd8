"""Shell core: statement accumulation, preprocessing, dispatch, the SQL engine and the auth policy."""
from neoshell.core.accumulator import should_submit
from neoshell.core.preprocess import preprocess, Statement, ShellControl
from neoshell.core.dispatch import classify, split_fields, Dispatcher
from neoshell.core.auth import AuthSession, SessionTokens

__all__ = [
    'should_submit', 'preprocess', 'Statement', 'ShellControl',
    'classify', 'split_fields', 'Dispatcher', 'AuthSession', 'SessionTokens',
]
