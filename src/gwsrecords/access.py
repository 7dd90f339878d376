from collections.abc import Iterable
from pathlib import Path
import json
import copy
import logging
from functools import wraps

import google.auth
import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google.oauth2 import service_account
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource
import googleapiclient.discovery_cache as gws_discovery_cache

logger = logging.getLogger(__name__)

class __GWSAccess():
    """
    The one authenticated session with Google this process gets.
    https://developers.google.com/workspace/guides/create-credentials covers
    getting hold of credentials.  On connect() they are looked for in order:

        service account info:   key dict from config['service_account_info'],
                                for unattended use
        token cache:            OAuth tokens from an earlier run, refreshed
                                when expired and discarded if they don't cover
                                the scopes now asked for
        client secrets:         OAuth installed app flow through a browser,
                                the tokens it yields go to the cache
        application default:    GOOGLE_APPLICATION_CREDENTIALS etc

    Modules that call an API add the scopes they need when imported, a scope
    added to a live session reconnects to get it granted.

    Kept as a module singleton, the service() decorator below is how API
    wrappers actually get at it.
    """

    __SCOPES = {
        "sheets": "https://www.googleapis.com/auth/spreadsheets",
        "sheets-ro": "https://www.googleapis.com/auth/spreadsheets.readonly",
        "drive-file": "https://www.googleapis.com/auth/drive.file",
        "drive": "https://www.googleapis.com/auth/drive",
        "drive-ro": "https://www.googleapis.com/auth/drive.readonly",
    }
    __SCOPE_URL_PREFIX = "https://www.googleapis.com/"

    __DEFAULT_AUTH_PROMPT_MSG = "Open this URL to let gwsrecords at your spreadsheets: {url}"
    __DEFAULT_AUTH_FLOW_SUCCESS_MSG = "Signed in, this window can be closed."
    __DEFAULT_SECRETS = Path.home() / "gws_client_secrets.json"
    __DEFAULT_CACHE = Path.home() / "gws_tokens.json"

    def __init__(self) -> None:
        self.reset()

    def __bool__(self) -> bool:
        return self.connected

    def __str__(self) -> str:
        if self.connected:
            return f"Connected:{self.session_scopes}"
        return f"Disconnected:{self.__scopes}"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @classmethod
    def get_scope(cls, scope: str) -> str:
        """
        Scope URL for a short label like 'sheets'.  A full scope URL is
        passed back as is, anything else gives an empty string.
        """
        label = str(scope)
        if label in cls.__SCOPES:
            return cls.__SCOPES[label]
        return label if label.startswith(cls.__SCOPE_URL_PREFIX) else ""

    @classmethod
    def _scope_list(cls, value: None|str|Iterable[str]) -> list[str]:
        """Resolve a label, URL or list of either to scope URLs, unknowns dropped"""
        if value is None:
            return []
        if isinstance(value, str) or not isinstance(value, Iterable):
            value = [value]
        resolved = []
        for v in value:
            s = cls.get_scope(v)
            if s and s not in resolved:
                resolved.append(s)
        return resolved

    def _changed(self, reconnect: bool) -> None:
        # credentials depend on what changed, a live session has to be redone
        if reconnect and self.connected:
            self.connect()

    @property
    def client_secrets(self) -> Path:
        """OAuth client secrets json as downloaded from the cloud console"""
        return self.__secrets

    @client_secrets.setter
    def client_secrets(self, value: Path|str) -> None:
        val = Path(value)
        changed = val != self.__secrets
        self.__secrets = val
        self._changed(changed)

    @property
    def cred_cache(self) -> Path:
        """Where OAuth tokens are kept between runs"""
        return self.__cache

    @cred_cache.setter
    def cred_cache(self, value: Path|str) -> None:
        val = Path(value)
        changed = val != self.__cache
        self.__cache = val
        self._changed(changed)

    @property
    def service_account_info(self) -> dict|None:
        """Service account key as parsed from its json file, or None"""
        return self.__service_account_info

    @service_account_info.setter
    def service_account_info(self, value: dict|str|None) -> None:
        info = json.loads(value) if isinstance(value, str) else value
        if info != self.__service_account_info:
            self.__service_account_info = info
            self.clear()

    def clear(self) -> None:
        """Forget the session and built services, configuration stays"""
        self.__creds = None
        self.__services = {}

    @property
    def connected(self) -> bool:
        return self.__creds is not None and bool(self.__creds.valid)

    @property
    def session_scopes(self) -> list[str]:
        """What the live session was granted, empty when not connected"""
        if not self.connected:
            return []
        return list(self.__creds.scopes or [])

    @property
    def scopes(self) -> list[str]:
        """What will be asked for on the next connect()"""
        return self.__scopes

    @scopes.setter
    def scopes(self, value: None|list[str]|str) -> None:
        """
        Replace the requested scopes.  A live session is refreshed if it
        lacks any of them, setting no scopes drops the session.
        """
        self.__scopes = self._scope_list(value)
        if self.__scopes and self.connected:
            self.refresh()
        else:
            self.clear()

    def append_scopes(self, *args) -> bool:
        """Request more scopes, each argument a label, URL or list of them"""
        for a in args:
            self.__scopes += [s for s in self._scope_list(a) if s not in self.__scopes]
        return self.refresh()

    def scope_in_session(self, scope: str) -> bool:
        s = self.get_scope(scope)
        return bool(s) and s in self.session_scopes

    @property
    def creds(self):
        return self.__creds

    @property
    def config(self) -> dict:
        """
        Everything needed to reconnect later as a plain dict, ready to go
        into whatever config file the application keeps.
        """
        return {
            'secrets': str(self.__secrets),
            'cache': str(self.__cache),
            'scopes': list(self.__scopes),
            'server': self.auth_server,
            'port': self.auth_port,
            'service_account_info': self.__service_account_info
        }

    @config.setter
    def config(self, config: dict) -> None:
        """
        Apply settings from a dict shaped like the config getter's output.
        Missing keys leave the current setting alone.  auth_prompt_msg and
        flow_success_msg are also taken for the OAuth browser flow.
        """
        if config.get('port') is not None:
            self.auth_port = int(config['port'])
        if config.get('server') is not None:
            self.auth_server = str(config['server'])
        if config.get('auth_prompt_msg') is not None:
            self.auth_prompt_msg = str(config['auth_prompt_msg'])
        if config.get('flow_success_msg') is not None:
            self.auth_flow_success_msg = str(config['flow_success_msg'])

        reconnect = False
        if config.get('scopes'):
            self.__scopes = self._scope_list(config['scopes'])
            reconnect = True
        if config.get('cache') is not None:
            self.__cache = Path(config['cache'])
            reconnect = True
        if config.get('secrets') is not None:
            self.__secrets = Path(config['secrets'])
            reconnect = True
        info = config.get('service_account_info')
        if info is not None:
            self.__service_account_info = json.loads(info) if isinstance(info, str) else dict(info)
            reconnect = True
        self._changed(reconnect)

    def reset(self) -> None:
        """Back to a fresh unconnected session with default settings"""
        self.__secrets = self.__DEFAULT_SECRETS
        self.__cache = self.__DEFAULT_CACHE
        self.__discovery_cache = gws_discovery_cache.autodetect()
        self.__creds = None
        self.__scopes = []
        self.__services = {}
        self.__service_account_info = None
        self.auth_server = 'localhost'
        self.auth_port = 0
        self.auth_prompt_msg = self.__DEFAULT_AUTH_PROMPT_MSG
        self.auth_flow_success_msg = self.__DEFAULT_AUTH_FLOW_SUCCESS_MSG

    def refresh(self) -> bool:
        """
        Reconnect if the live session is missing requested scopes.
        Not being connected at all is fine, that happens on first use.
        """
        if self.connected and not all(s in self.session_scopes for s in self.__scopes):
            return self.connect()
        return True

    def _load_cached_creds(self, requested_scopes: list[str]) -> None:
        """Pick up OAuth tokens from the cache if they cover the requested scopes"""
        if not self.__cache.is_file():
            return
        cf = self.__cache.resolve()
        # refreshing doesn't check scopes so the cache has to be checked here
        with open(cf, 'r', encoding='utf-8') as f:
            granted = json.load(f).get('scopes', [])
        if any(s not in granted for s in requested_scopes):
            logger.debug("token cache %s missing requested scopes, discarding", cf)
            self.__cache.unlink()
            return
        self.__creds = Credentials.from_authorized_user_file(str(cf), requested_scopes)
        if not self.connected and self.__creds.refresh_token:
            try:
                self.__creds.refresh(Request())
            except google.auth.exceptions.RefreshError as e:
                logger.warning("stored tokens could not be refreshed (%s), signing in again", e)
        if not self.connected:
            self.__creds = None
            self.__cache.unlink(missing_ok=True)

    def _save_cached_creds(self, requested_scopes: list[str]) -> None:
        # scopes is not needed for a refresh, it is what _load_cached_creds checks
        user_info = {'refresh_token': self.__creds.refresh_token, 'client_id': self.__creds.client_id,
                     'client_secret': self.__creds.client_secret, 'scopes': requested_scopes}
        with open(self.__cache.resolve(), 'w', encoding='utf-8') as f:
            json.dump(user_info, f, ensure_ascii=False, indent=2)

    def _service_account_creds(self, requested_scopes: list[str]) -> None:
        self.__creds = service_account.Credentials.from_service_account_info(
            self.__service_account_info, scopes=requested_scopes)
        # no token until the first refresh
        self.__creds.refresh(Request())
        logger.debug("connected with service account %s", self.__creds.service_account_email)

    def _oauth_flow_creds(self, requested_scopes: list[str]) -> None:
        flow = InstalledAppFlow.from_client_secrets_file(str(self.__secrets), requested_scopes)
        self.__creds = flow.run_local_server(host=self.auth_server, port=self.auth_port,
                                             authorization_prompt_message=self.auth_prompt_msg,
                                             success_message=self.auth_flow_success_msg)
        if self.connected:
            self._save_cached_creds(requested_scopes)

    def _default_creds(self, requested_scopes: list[str]) -> None:
        try:
            self.__creds, _ = google.auth.default(requested_scopes)
            if not self.connected:
                self.__creds.refresh(Request())
        except google.auth.exceptions.DefaultCredentialsError:
            logger.warning("no client secrets at %s and no application default credentials",
                           self.__secrets)
            self.__creds = None

    def connect(self) -> bool:
        """
        Start a new session for the requested scopes, returns whether
        that worked.  Nothing is tried when no scopes are requested.
        """
        self.clear()
        if not self.__scopes:
            return False
        requested_scopes = copy.copy(self.__scopes)

        if self.__service_account_info:
            self._service_account_creds(requested_scopes)
            return self.connected
        self._load_cached_creds(requested_scopes)
        if self.connected:
            return True
        if self.__secrets.is_file():
            self._oauth_flow_creds(requested_scopes)
        else:
            self._default_creds(requested_scopes)
        return self.connected

    def get_service(self, name: str, version: str) -> Resource|None:
        """
        The discovery built service name:version, connecting first if need
        be.  None when there is no session to be had.
        """
        if not self.connected and not self.connect():
            return None
        key = f'{name}:{version}'
        if key not in self.__services:
            self.__services[key] = build(name, version, credentials=self.__creds,
                                         cache=self.__discovery_cache)
        return self.__services[key]

gws = __GWSAccess()

def service(name: str, version: str):
    """
    Decorator handing the wrapped API call the service it needs as the
    'service' keyword argument.
    param: name: service name
    param: version: service version
    """
    def _inner_decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            s = gws.get_service(name, version)
            if s is None:
                raise RuntimeError(f"No authenticated session for {name}:{version}, check gws.config")
            kwargs['service'] = s
            return f(*args, **kwargs)
        return wrapped
    return _inner_decorator
