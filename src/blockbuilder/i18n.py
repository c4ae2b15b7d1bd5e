"""Internationalization (i18n) support using gettext."""

import gettext as gettext_module
import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

DOMAIN = "blockbuilder"
LOCALE_DIR = Path(__file__).parent / "locales"

# Thread-local storage for translations
_thread_local = threading.local()

_ui_language = "en"


def initialize(ui_language: str = "en") -> None:
    """Initialize translation system with language configuration.

    Call once at application startup before rendering forms.

    Args:
        ui_language: Language code for form labels and validation messages
    """
    global _ui_language

    _ui_language = ui_language
    if hasattr(_thread_local, "translation"):
        del _thread_local.translation

    logger.info(f"Translation initialized: UI={ui_language}")


def _get_translation() -> gettext_module.NullTranslations:
    if not hasattr(_thread_local, "translation"):
        _thread_local.translation = _load_translation(_ui_language)
    return _thread_local.translation


def gettext(message: str) -> str:
    """Translate UI message (form chrome, validation messages).

    Args:
        message: Message to translate

    Returns:
        Translated message
    """
    return _get_translation().gettext(message)


def ngettext(singular: str, plural: str, count: int) -> str:
    return _get_translation().ngettext(singular, plural, count)


def _load_translation(language: str | None = None) -> gettext_module.NullTranslations:
    """Load gettext translation object with fallback.

    Args:
        language: Language code (e.g., "en", "ru")
                 If None, returns NullTranslations (fallback to msgid)

    Returns:
        Translations object with fallback enabled
    """
    if not language:
        logger.debug("No language specified, using NullTranslations")
        return gettext_module.NullTranslations()

    try:
        translation = gettext_module.translation(
            domain=DOMAIN,
            localedir=str(LOCALE_DIR),
            languages=[language],
            fallback=True,
        )
        logger.debug(f"Loaded translation for language: {language}")
        return translation
    except Exception as e:
        logger.warning(f"Failed to load translation for {language}: {e}, using fallback")
        return gettext_module.NullTranslations()
