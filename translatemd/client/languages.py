"""
Supported conversation languages

`id` is the locale used for speech capture, `translation_code` is what the
proxy receives as `from`/`to`. `speech_supported` marks locales the device
recognizer handles; the others always go through server transcription.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel


class Language(BaseModel):
    id: str
    display_name: str
    translation_code: str
    speech_supported: bool = True

    @property
    def is_auto(self) -> bool:
        return self.id == AUTO_LANGUAGE_ID


AUTO_LANGUAGE_ID = "auto"


def _lang(id: str, display_name: str, translation_code: str, speech_supported: bool = True) -> Language:
    return Language(id=id, display_name=display_name, translation_code=translation_code, speech_supported=speech_supported)


SUPPORTED_LANGUAGES: List[Language] = [
    _lang("en-US", "English (US)", "en"),
    _lang("en-GB", "English (UK)", "en"),
    _lang("es-ES", "Spanish (Spain)", "es"),
    _lang("es-MX", "Spanish (Mexico)", "es"),
    _lang("fr-FR", "French", "fr"),
    _lang("de-DE", "German", "de"),
    _lang("it-IT", "Italian", "it"),
    _lang("pt-BR", "Portuguese (Brazil)", "pt"),
    _lang("pt-PT", "Portuguese (Portugal)", "pt"),
    _lang("ru-RU", "Russian", "ru"),
    _lang("ja-JP", "Japanese", "ja"),
    _lang("ko-KR", "Korean", "ko"),
    _lang("zh-CN", "Chinese (Simplified)", "zh-Hans"),
    _lang("zh-TW", "Chinese (Traditional)", "zh-Hant"),
    _lang("ar-SA", "Arabic", "ar"),
    _lang("hi-IN", "Hindi", "hi"),
    _lang("nl-NL", "Dutch", "nl"),
    _lang("sv-SE", "Swedish", "sv"),
    _lang("no-NO", "Norwegian", "no"),
    _lang("da-DK", "Danish", "da"),
    _lang("fi-FI", "Finnish", "fi"),
    _lang("pl-PL", "Polish", "pl"),
    _lang("tr-TR", "Turkish", "tr"),
    _lang("he-IL", "Hebrew", "he"),
    _lang("th-TH", "Thai", "th"),
    _lang("vi-VN", "Vietnamese", "vi"),
    _lang("id-ID", "Indonesian", "id"),
    _lang("ms-MY", "Malay", "ms"),
    _lang("tl-PH", "Filipino", "tl"),
    # Server transcription only
    _lang(AUTO_LANGUAGE_ID, "Auto-detect", "auto", speech_supported=False),
    _lang("ur-PK", "Urdu", "ur", speech_supported=False),
    _lang("bn-BD", "Bengali", "bn", speech_supported=False),
    _lang("ta-IN", "Tamil", "ta", speech_supported=False),
    _lang("te-IN", "Telugu", "te", speech_supported=False),
    _lang("pa-IN", "Punjabi", "pa", speech_supported=False),
    _lang("ne-NP", "Nepali", "ne", speech_supported=False),
    _lang("my-MM", "Burmese", "my", speech_supported=False),
    _lang("km-KH", "Khmer", "km", speech_supported=False),
    _lang("am-ET", "Amharic", "am", speech_supported=False),
    _lang("sw-KE", "Swahili", "sw", speech_supported=False),
    _lang("uk-UA", "Ukrainian", "uk", speech_supported=False),
    _lang("ro-RO", "Romanian", "ro", speech_supported=False),
    _lang("hu-HU", "Hungarian", "hu", speech_supported=False),
    _lang("cs-CZ", "Czech", "cs", speech_supported=False),
    _lang("ca-ES", "Catalan", "ca", speech_supported=False),
]

_BY_ID: Dict[str, Language] = {language.id: language for language in SUPPORTED_LANGUAGES}

DEFAULT_DOCTOR_LANGUAGE_ID = "en-US"
DEFAULT_PATIENT_LANGUAGE_ID = "es-ES"


def language_by_id(language_id: str) -> Optional[Language]:
    return _BY_ID.get(language_id)


def server_only_languages() -> List[Language]:
    return [language for language in SUPPORTED_LANGUAGES if not language.speech_supported]
