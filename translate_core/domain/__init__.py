from __future__ import annotations

from translate_core.domain.errors import StorageError as StorageError
from translate_core.domain.errors import TranslateError as TranslateError
from translate_core.domain.errors import TranslateException as TranslateException
from translate_core.domain.errors import UnknownLanguageError as UnknownLanguageError
from translate_core.domain.models import HistoryItem as HistoryItem
from translate_core.domain.models import Language as Language
