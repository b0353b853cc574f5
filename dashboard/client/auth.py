"""
Contrôleur d'authentification du client.

Machine à états de la session:

    ANONYMOUS --(login/signup réussi)--> AUTHENTICATING --> AUTHENTICATED
    AUTHENTICATED --(logout)--> ANONYMOUS

Le formulaire actif (connexion, inscription, mot de passe oublié) fait partie de l'état. Toutes
les opérations retournent un `AuthResult` dont le message est destiné à l'utilisateur; les
erreurs de saisie ou d'identifiants ne lèvent jamais.

En mode distant, une indisponibilité du service de comptes (réseau, 5xx, réponse illisible)
bascule sur les comptes locaux. Un refus explicite du service (4xx) est affiché tel quel.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from dashboard.client.dashboard import DashboardController
from dashboard.client.persistence import PersistenceAdapter, RemoteAuthResult
from dashboard.domain.auth import hash_password, verify_password
from dashboard.domain.entities import UserRecord
from dashboard.infra.local_storage import SESSION_SLOT, KeyValueStorage

log = structlog.get_logger(__name__)

MISSING_CREDENTIALS = "Please enter a username and password."
INVALID_CREDENTIALS = "Invalid username or password."
MISSING_FIELDS = "Please fill out all fields."
PASSWORD_MISMATCH = "Passwords do not match."
USER_EXISTS = "User already exists. Please choose another username."
RESET_OK = "Password reset successful. You can now log in."
RESET_FAILED = "Password reset failed."
UNKNOWN_USER = "User does not exist."
PASSWORD_UPDATED = "Password updated successfully."
PASSWORD_UPDATE_FAILED = "Password update failed."
USER_NOT_FOUND = "User not found."
AUTH_IN_PROGRESS = "Authentication already in progress."


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthForm(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    FORGOT = "forgot"


@dataclass
class AuthResult:
    ok: bool
    message: str = ""


class AuthController:
    """Gère la session et délègue la vérification des identifiants à la persistance."""

    def __init__(
        self,
        persistence: PersistenceAdapter,
        storage: KeyValueStorage,
        dashboard: DashboardController,
    ) -> None:
        self.persistence = persistence
        self.storage = storage
        self.dashboard = dashboard
        self.users: dict[str, UserRecord] = persistence.load_users()
        self.state = SessionState.ANONYMOUS
        self.form = AuthForm.LOGIN
        self.current_user: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def show_form(self, form: AuthForm | str) -> AuthForm:
        self.form = AuthForm(form)
        return self.form

    # ---- Session -------------------------------------------------------------

    async def restore_session(self) -> AuthResult:
        """Reprend la session mémorisée au démarrage, si elle est encore valide.

        En mode distant les comptes ne sont pas connus localement: le marqueur de session suffit.
        """
        try:
            stored = self.storage.get_item(SESSION_SLOT)
        except OSError as exc:
            log.error("session_load_failed", error=str(exc))
            stored = None
        if stored and (self.persistence.is_remote or stored in self.users):
            await self._enter(stored)
            return AuthResult(True)
        self.show_form(AuthForm.LOGIN)
        return AuthResult(False)

    async def login(self, username: str | None, password: str | None) -> AuthResult:
        username = (username or "").strip()
        if not username or not password:
            return AuthResult(False, MISSING_CREDENTIALS)
        if self.state is SessionState.AUTHENTICATING:
            return AuthResult(False, AUTH_IN_PROGRESS)
        previous = self.state
        self.state = SessionState.AUTHENTICATING
        try:
            if self.persistence.is_remote:
                remote = await self.persistence.remote_auth("login", username, password)
                accepted = remote.ok or (remote.transport_error and self._check_local(username, password))
            else:
                accepted = self._check_local(username, password)
            if not accepted:
                log.info("login_rejected", username=username)
                return AuthResult(False, INVALID_CREDENTIALS)
            await self._enter(username)
            return AuthResult(True)
        finally:
            if self.state is SessionState.AUTHENTICATING:
                self.state = previous

    async def signup(self, username: str | None, password: str | None, confirm: str | None) -> AuthResult:
        username = (username or "").strip()
        if not username or not password or not confirm:
            return AuthResult(False, MISSING_FIELDS)
        if password != confirm:
            return AuthResult(False, PASSWORD_MISMATCH)
        if self.state is SessionState.AUTHENTICATING:
            return AuthResult(False, AUTH_IN_PROGRESS)
        previous = self.state
        self.state = SessionState.AUTHENTICATING
        try:
            if self.persistence.is_remote:
                remote = await self.persistence.remote_auth("signup", username, password)
                if not remote.ok and not remote.transport_error:
                    return AuthResult(False, _remote_message(remote, USER_EXISTS))
                if not remote.ok and not self._create_local(username, password):
                    return AuthResult(False, USER_EXISTS)
            elif not self._create_local(username, password):
                return AuthResult(False, USER_EXISTS)
            log.info("signup_succeeded", username=username)
            await self._enter(username)
            return AuthResult(True)
        finally:
            if self.state is SessionState.AUTHENTICATING:
                self.state = previous

    async def forgot_password(
        self,
        username: str | None,
        new_password: str | None,
        confirm: str | None,
    ) -> AuthResult:
        """Réinitialise un mot de passe sans changer l'état de session."""
        username = (username or "").strip()
        if not username or not new_password or not confirm:
            return AuthResult(False, MISSING_FIELDS)
        if new_password != confirm:
            return AuthResult(False, PASSWORD_MISMATCH)
        if self.persistence.is_remote:
            remote = await self.persistence.remote_auth("resetPassword", username, new_password=new_password)
            if remote.ok:
                self.show_form(AuthForm.LOGIN)
                return AuthResult(True, RESET_OK)
            if not remote.transport_error:
                return AuthResult(False, _remote_message(remote, RESET_FAILED))
        if username not in self.users:
            return AuthResult(False, UNKNOWN_USER)
        self._set_local_password(username, new_password)
        self.show_form(AuthForm.LOGIN)
        return AuthResult(True, RESET_OK)

    async def change_password(
        self,
        new_password: str | None,
        confirm: str | None,
        current_password: str | None = None,
    ) -> AuthResult:
        """Change le mot de passe de l'utilisateur connecté.

        Le service distant exige le mot de passe courant; le mode local s'en passe.
        """
        if not new_password or not confirm:
            return AuthResult(False, MISSING_FIELDS)
        if new_password != confirm:
            return AuthResult(False, PASSWORD_MISMATCH)
        user = self.current_user
        if not user:
            return AuthResult(False, USER_NOT_FOUND)
        if self.persistence.is_remote:
            remote = await self.persistence.remote_auth(
                "changePassword", user, current_password, new_password
            )
            if remote.ok:
                return AuthResult(True, PASSWORD_UPDATED)
            if not remote.transport_error:
                return AuthResult(False, _remote_message(remote, PASSWORD_UPDATE_FAILED))
            if user not in self.users:
                return AuthResult(False, PASSWORD_UPDATE_FAILED)
        if user not in self.users:
            return AuthResult(False, USER_NOT_FOUND)
        self._set_local_password(user, new_password)
        return AuthResult(True, PASSWORD_UPDATED)

    def logout(self) -> AuthResult:
        try:
            self.storage.remove_item(SESSION_SLOT)
        except OSError as exc:
            log.error("session_clear_failed", error=str(exc))
        log.info("logout", username=self.current_user)
        self.current_user = None
        self.state = SessionState.ANONYMOUS
        self.dashboard.deactivate()
        self.show_form(AuthForm.LOGIN)
        return AuthResult(True)

    # ---- Interne -------------------------------------------------------------

    async def _enter(self, username: str) -> None:
        try:
            self.storage.set_item(SESSION_SLOT, username)
        except OSError as exc:
            log.error("session_save_failed", username=username, error=str(exc))
        self.current_user = username
        await self.dashboard.activate(username)
        self.state = SessionState.AUTHENTICATED

    def _check_local(self, username: str, password: str) -> bool:
        record = self.users.get(username)
        return record is not None and verify_password(password, record.password_hash)

    def _create_local(self, username: str, password: str) -> bool:
        if username in self.users:
            return False
        self.users[username] = UserRecord(username=username, password_hash=hash_password(password))
        self.persistence.save_users(self.users)
        return True

    def _set_local_password(self, username: str, password: str) -> None:
        self.users[username] = UserRecord(username=username, password_hash=hash_password(password))
        self.persistence.save_users(self.users)


def _remote_message(result: RemoteAuthResult, default: str) -> str:
    return result.error or default
