"""
AI gateway client wrapper.

Uses the OpenAI-compatible chat completion API exposed by the gateway.
"""

import logging
import os

import openai
from openai import OpenAI

import config
from . import music
from . import parser
from .encoder import encode_base64
from .errors import ConfigurationError, GatewayError, gateway_error_for_status
from .models import (
    FormatOnlyRequest,
    GatewayRequest,
    GatewayResponse,
    LegacyFilenameRequest,
    RawAudioRequest,
)

logger = logging.getLogger(__name__)


TRANSCRIPTION_PROMPT = """Você é um especialista em transcrição de músicas brasileiras.
Ouça este áudio com atenção e transcreva LITERALMENTE a letra cantada.
NÃO invente versos: escreva apenas o que de fato é cantado.
Adicione os acordes inline no formato [Acorde] imediatamente antes da sílaba onde mudam.
Se não conseguir identificar um trecho com clareza, escreva [?] no lugar.

Formato de saída:
---LETRA---
(letra com acordes inline no formato [Acorde])
---FIM---"""

TRANSCRIPTION_WITH_KEY_PROMPT = """Você é um especialista em transcrição de músicas brasileiras.
Ouça este áudio com atenção e transcreva LITERALMENTE a letra cantada.
NÃO invente versos: escreva apenas o que de fato é cantado.
Identifique o tom da música e adicione os acordes inline no formato [Acorde]
imediatamente antes da sílaba onde mudam.
Se não conseguir identificar um trecho com clareza, escreva [?] no lugar.

Formato de saída:
TOM: <tom, ex.: C, Am, F#m, Bb>
---RESPOSTA---
(letra com acordes inline no formato [Acorde])
---FIM---"""

FORMAT_PROMPT = """Você é um especialista em cifras no estilo do CifraClub.
Reformate a letra abaixo como uma cifra completa no tom de {key}.

Regras:
1. Escreva os acordes SEM colchetes, numa linha própria, logo acima da sílaba onde mudam.
2. Agrupe a música em seções nomeadas: [Intro], [Verso], [Refrão], [Ponte], [Solo], [Outro].
3. Use o campo harmônico de {key}: {field}. Acordes fora dele só como empréstimo
   ou dominante secundária, com moderação.
4. Comece e termine as frases principais no acorde de {key}.
5. Não altere a letra.

Música: {song_name}

Letra:
{lyrics}

Formato de saída:
---RESPOSTA---
(cifra formatada)
---FIM---"""

LEGACY_SYSTEM_PROMPT = """Você é um especialista em música brasileira, capaz de criar cifras no estilo do CifraClub.
Quando receber o nome de uma música, você deve:
1. Transcrever a letra completa
2. Adicionar os acordes no formato [Acorde] antes de cada trecho
3. Manter o formato limpo e legível

Formato de saída:
---LETRA---
(letra com acordes inline no formato [Acorde])
---FIM---"""

LEGACY_USER_PROMPT = """Crie uma cifra completa para a música do arquivo: "{filename}".
Se você conhecer essa música, transcreva a letra real com os acordes corretos.
Se não conhecer, crie uma letra e acordes que façam sentido com o título/nome do arquivo."""


class GatewayClient:
    """Client for the hosted AI completion gateway."""

    def __init__(self, api_key: str, base_url: str = None, model: str = None,
                 timeout: float = None, client=None):
        self.base_url = base_url or config.GATEWAY_URL
        self.model = model or config.GATEWAY_MODEL
        self.timeout = timeout or config.GATEWAY_TIMEOUT

        # Retries are disabled so that 429 reaches the caller
        self.client = client or OpenAI(
            base_url=self.base_url,
            api_key=api_key,
            timeout=self.timeout,
            max_retries=0,
        )

    def chat(self, messages: list[dict]) -> str:
        """
        Send a chat completion request.

        Returns the assistant's response text. Raises a GatewayError subclass
        when the gateway answers with a non-success status.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except openai.APIStatusError as e:
            logger.error(f"AI gateway error: {e.status_code} {str(e.message)[:200]}")
            raise gateway_error_for_status(e.status_code) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def build_messages(self, request: GatewayRequest) -> list[dict]:
        """Build the chat messages for one request variant."""
        if isinstance(request, RawAudioRequest):
            return self._raw_audio_messages(request)
        if isinstance(request, FormatOnlyRequest):
            return self._format_only_messages(request)
        if isinstance(request, LegacyFilenameRequest):
            return self._legacy_messages(request)
        raise TypeError(f"Unknown gateway request: {type(request).__name__}")

    def _raw_audio_messages(self, request: RawAudioRequest) -> list[dict]:
        prompt = TRANSCRIPTION_WITH_KEY_PROMPT if request.detect_key else TRANSCRIPTION_PROMPT
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "input_audio",
                        "input_audio": {
                            "data": encode_base64(request.audio),
                            "format": request.audio_format,
                        },
                    },
                ],
            }
        ]

    def _format_only_messages(self, request: FormatOnlyRequest) -> list[dict]:
        key = music.normalize_key(request.key)
        prompt = FORMAT_PROMPT.format(
            key=key,
            field=", ".join(music.harmonic_field(key)),
            song_name=request.song_name or "(sem título)",
            lyrics=request.lyrics,
        )
        return [{"role": "user", "content": prompt}]

    def _legacy_messages(self, request: LegacyFilenameRequest) -> list[dict]:
        return [
            {"role": "system", "content": LEGACY_SYSTEM_PROMPT},
            {"role": "user", "content": LEGACY_USER_PROMPT.format(filename=request.filename)},
        ]

    def transcribe(self, request: GatewayRequest) -> GatewayResponse:
        """
        Run one request variant against the gateway and parse the answer.

        Never raises: gateway and unexpected errors come back as a failed
        GatewayResponse carrying the status to surface.
        """
        try:
            content = self.chat(self.build_messages(request))
            logger.info(f"AI response received for {request.mode}, parsing content...")

            parsed = parser.parse_response(
                content,
                bare_chords=isinstance(request, FormatOnlyRequest),
            )
            detected_key = parsed.detected_key
            if isinstance(request, FormatOnlyRequest) and not detected_key:
                detected_key = music.normalize_key(request.key)

            return GatewayResponse.ok(parsed.lyrics, parsed.chords, detected_key)

        except GatewayError as e:
            return GatewayResponse.failure(str(e), status=e.status)
        except Exception as e:
            logger.exception("Transcription error")
            return GatewayResponse.failure(str(e) or type(e).__name__)

    __call__ = transcribe


def require_client(**kwargs) -> GatewayClient:
    """
    Build a gateway client, raising ConfigurationError if the credential is missing.
    """
    api_key = os.environ.get(config.API_KEY_ENV)
    if not api_key:
        raise ConfigurationError(f"{config.API_KEY_ENV} is not configured")
    return GatewayClient(api_key=api_key, **kwargs)
