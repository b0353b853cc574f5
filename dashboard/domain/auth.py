"""
Module d'authentification: hachage et vérification des secrets.

Les secrets ne sont jamais stockés en clair; ils restent comparables par égalité via
`verify_password`. Un enregistrement créé implicitement (hash vide) n'authentifie personne.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(p: str) -> str:
    """Hache un mot de passe en utilisant PBKDF2."""
    return pwd_context.hash(p)


def verify_password(p: str | None, h: str | None) -> bool:
    """Vérifie un mot de passe contre son hash (False si l'un des deux est vide)."""
    if not p or not h:
        return False
    try:
        return pwd_context.verify(p, h)
    except ValueError:
        # hash illisible (enregistrement corrompu ou format inconnu)
        return False
