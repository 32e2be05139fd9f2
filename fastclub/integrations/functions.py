"""
Edge Functions Gateway

Invocazione delle funzioni serverless di Supabase (email, inviti, AI).
Le funzioni sono esterne: qui si costruisce solo il corpo JSON e si
decodifica la risposta. Nessun nuovo tentativo in caso di errore.
"""
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from ..exceptions import BackendError, ValidationError


class EdgeFunction(str, Enum):
    """Funzioni serverless disponibili"""
    send_email = "send-email"
    send_club_invite = "send-club-invite"
    send_confirmation_email = "send-confirmation-email"
    generate_document_ai = "generate-document-ai"
    generate_flyer_ai = "generate-flyer-ai"
    speech_to_text = "speech-to-text"


class EmailType(str, Enum):
    """Template di send-email"""
    welcome = "welcome"
    confirmation = "confirmation"
    notification = "notification"
    campaign = "campaign"
    club_invite = "clubInvite"
    support = "support"


class DocumentType(str, Enum):
    """Documenti generabili con l'AI"""
    verbali = "verbali"
    programmi = "programmi"
    comunicazioni = "comunicazioni"
    circolari = "circolari"


class FlyerFormat(str, Enum):
    square = "1:1"
    story = "9:16"


class FlyerStyle(str, Enum):
    professionale = "professionale"
    festa = "festa"
    club = "club"
    service = "service"
    elegante = "elegante"
    moderno = "moderno"


class FunctionsGateway:
    """Client per le edge function"""

    def __init__(self, supabase):
        self.supabase = supabase

    def invoke(self, function: EdgeFunction, body: Dict[str, Any]) -> Dict[str, Any]:
        """Invoca la funzione e restituisce il JSON di risposta"""
        try:
            raw = self.supabase.functions.invoke(
                function.value,
                invoke_options={"body": body}
            )
        except Exception as e:
            logger.error(f"Errore nella funzione {function.value}: {e}")
            raise BackendError(f"Errore nella funzione {function.value}", e) from e

        data = self._decode(raw)
        if isinstance(data, dict) and data.get("success") is False:
            message = data.get("error") or "Errore sconosciuto"
            logger.error(f"La funzione {function.value} ha restituito un errore: {message}")
            raise BackendError(f"{function.value}: {message}")
        return data

    @staticmethod
    def _decode(raw: Any) -> Dict[str, Any]:
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        if isinstance(raw, str):
            if not raw.strip():
                return {}
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                raise BackendError("Risposta della funzione non valida", e) from e
        raise BackendError(f"Risposta della funzione non riconosciuta: {type(raw).__name__}")

    # =============================================
    # Email
    # =============================================

    def send_email(
        self,
        email_type: EmailType,
        to: Union[str, List[str]],
        subject: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        recipients = [to] if isinstance(to, str) else list(to)
        if not recipients:
            raise ValidationError("to", "Almeno un destinatario è obbligatorio")
        body: Dict[str, Any] = {"type": email_type.value, "to": recipients, "data": data or {}}
        if subject:
            body["subject"] = subject
        return self.invoke(EdgeFunction.send_email, body)

    def send_club_invite(self, invite_id: str) -> Dict[str, Any]:
        """La funzione legge l'invito e il nome del club dal database"""
        return self.invoke(EdgeFunction.send_club_invite, {"inviteId": invite_id})

    # =============================================
    # AI
    # =============================================

    def generate_document(
        self,
        document_type: DocumentType,
        current_content: Dict[str, Any],
        club_name: Optional[str] = None,
        additional_context: Optional[str] = None
    ) -> Dict[str, Any]:
        """Completa i campi del documento; restituisce generatedContent, suggestions, summary"""
        body: Dict[str, Any] = {
            "type": document_type.value,
            "currentContent": current_content,
            "clubName": club_name or "Rotary Club",
        }
        if additional_context:
            body["additionalContext"] = additional_context
        return self.invoke(EdgeFunction.generate_document_ai, body)

    def generate_flyer(
        self,
        title: str,
        description: Optional[str] = None,
        flyer_format: FlyerFormat = FlyerFormat.square,
        style: FlyerStyle = FlyerStyle.club,
        location: Optional[str] = None,
        date: Optional[str] = None,
        logo_descriptions: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Restituisce imageData e prompt"""
        if not title or not title.strip():
            raise ValidationError("title", "Il titolo del volantino è obbligatorio")
        body: Dict[str, Any] = {
            "title": title,
            "style": style.value,
            "format": flyer_format.value,
            "hasLogos": bool(logo_descriptions),
        }
        optional = {
            "additionalInfo": description,
            "location": location,
            "date": date,
            "logoDescriptions": logo_descriptions,
        }
        body.update({k: v for k, v in optional.items() if v})
        return self.invoke(EdgeFunction.generate_flyer_ai, body)

    def speech_to_text(self, audio_base64: str, language: str = "it") -> str:
        if not audio_base64:
            raise ValidationError("audio", "Audio mancante")
        data = self.invoke(EdgeFunction.speech_to_text, {
            "audioBase64": audio_base64,
            "language": language,
        })
        if data.get("error"):
            raise BackendError(f"speech-to-text: {data['error']}")
        return data.get("transcript", "")
