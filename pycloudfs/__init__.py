# CloudFS REST client
from .rest import Credential, RESTAdapter

__all__ = ["Credential", "RESTAdapter"]
