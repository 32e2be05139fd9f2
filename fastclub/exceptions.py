"""
Eccezioni di FastClub

Ogni eccezione corrisponde a una classe di errore del portale:
validazione (prima di qualsiasi chiamata al backend), club non risolto,
permessi insufficienti, record mancante, errore del backend.
"""


class FastClubError(Exception):
    """Eccezione base dell'applicazione"""

    status_code = 500


class ValidationError(FastClubError):
    """Campo obbligatorio mancante o non valido"""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def __str__(self):
        return f"{self.field}: {self.message}"


class TenantNotFoundError(FastClubError):
    """Nessun proprietario del club associato all'utente"""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(f"Nessun club associato all'utente {user_id}")
        self.user_id = user_id


class PermissionDeniedError(FastClubError):
    """L'utente non ha accesso all'operazione richiesta"""

    status_code = 403


class RecordNotFoundError(FastClubError):
    """Record non trovato nella tabella indicata"""

    status_code = 404

    def __init__(self, table: str, record_id: str):
        super().__init__(f"Record {record_id} non trovato in {table}")
        self.table = table
        self.record_id = record_id


class BackendError(FastClubError):
    """Errore di lettura/scrittura sul database remoto"""

    status_code = 502

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error

    def __str__(self):
        if self.original_error:
            return f"{self.args[0]} (Causa: {self.original_error})"
        return self.args[0]
