"""Standard language codes and their native display names."""

from __future__ import annotations

from enum import Enum

UNKNOWN_LANGUAGE_NAME = "未知"


class LanguageCode(str, Enum):
    """Language identifiers used across subtitle tasks."""

    SIMPLIFIED_CHINESE = "zh_cn"
    TRADITIONAL_CHINESE = "zh_tw"
    ENGLISH = "en"
    JAPANESE = "ja"
    INDONESIAN = "id"
    MALAYSIAN = "ms"
    THAI = "th"
    VIETNAMESE = "vi"
    FILIPINO = "fil"
    KOREAN = "ko"
    ARABIC = "ar"
    FRENCH = "fr"
    GERMAN = "de"
    ITALIAN = "it"
    RUSSIAN = "ru"
    PORTUGUESE = "pt"
    SPANISH = "es"
    HINDI = "hi"
    BENGALI = "bn"
    HEBREW = "he"
    PERSIAN = "fa"
    AFRIKAANS = "af"
    SWEDISH = "sv"
    FINNISH = "fi"
    DANISH = "da"
    NORWEGIAN = "no"
    DUTCH = "nl"
    GREEK = "el"
    UKRAINIAN = "uk"
    HUNGARIAN = "hu"
    POLISH = "pl"
    TURKISH = "tr"
    SERBIAN = "sr"
    CROATIAN = "hr"
    CZECH = "cs"
    PINYIN = "pinyin"
    SWAHILI = "sw"
    YORUBA = "yo"
    HAUSA = "ha"
    AMHARIC = "am"
    OROMO = "om"
    ICELANDIC = "is"
    LUXEMBOURGISH = "lb"
    CATALAN = "ca"
    ROMANIAN = "ro"
    MOLDOVAN = "ro"  # same code as Romanian
    SLOVAK = "sk"
    BOSNIAN = "bs"
    MACEDONIAN = "mk"
    SLOVENIAN = "sl"
    BULGARIAN = "bg"
    LATVIAN = "lv"
    LITHUANIAN = "lt"
    ESTONIAN = "et"
    MALTESE = "mt"
    ALBANIAN = "sq"
    PUNJABI = "pa"
    JAVANESE = "jv"
    TAMIL = "ta"
    URDU = "ur"
    MARATHI = "mr"
    TELUGU = "te"
    PASHTO = "ps"
    LINGALA = "ln"
    MALAYALAM = "ml"
    HAKKA_CHIN = "cnh"
    UZBEK = "uz"
    KANNADA = "kn"
    ODIA = "or"
    IGBO = "ig"
    ZULU = "zu"
    XHOSA = "xh"
    KHMER = "km"
    LAO = "lo"
    GEORGIAN = "ka"
    ARMENIAN = "hy"
    TAJIK = "tg"
    TURKMEN = "tk"
    KAZAKH = "kk"
    KYRGYZ = "ky"
    MONGOLIAN = "mn"
    SCOTTISH_GAELIC = "gd"
    IRISH = "ga"
    WELSH = "cy"
    BASHKIR = "ba"
    CEBUANO = "ceb"
    ILOCANO = "ilo"
    TATAR = "tt"
    PALI = "pi"
    KINYARWANDA = "rw"
    BELARUSIAN = "be"
    MALAGASY = "mg"
    TUVALUAN = "tvl"
    MARSHALLESE = "mh"
    CHAMORRO = "ch"
    SAMOAN = "sm"
    TONGAN = "to"
    MAORI = "mi"
    TOK_PISIN = "tpi"
    CHUVASH = "cv"
    KOMI = "kv"
    MANX = "gv"

    def __str__(self) -> str:
        return self.value


_L = LanguageCode

_NAMES: dict[LanguageCode, str] = {
    _L.SIMPLIFIED_CHINESE: "简体中文",
    _L.TRADITIONAL_CHINESE: "繁體中文",
    _L.ENGLISH: "English",
    _L.JAPANESE: "日本語",
    _L.INDONESIAN: "bahasa Indonesia",
    _L.ARABIC: "اَلْعَرَبِيَّةُ",
    _L.FILIPINO: "Wikang Filipino",
    _L.FRENCH: "Français",
    _L.GERMAN: "Deutsch",
    _L.ITALIAN: "Italiano",
    _L.KOREAN: "한국어",
    _L.MALAYSIAN: "Bahasa Melayu",
    _L.PORTUGUESE: "Português",
    _L.RUSSIAN: "Русский язык",
    _L.SPANISH: "Español",
    _L.THAI: "ภาษาไทย",
    _L.VIETNAMESE: "Tiếng Việt",
    _L.HINDI: "हिन्दी",
    _L.BENGALI: "বাংলা",
    _L.HEBREW: "עברית",
    _L.PERSIAN: "فارسی",
    _L.AFRIKAANS: "Afrikaans",
    _L.SWEDISH: "Svenska",
    _L.FINNISH: "Suomi",
    _L.DANISH: "Dansk",
    _L.NORWEGIAN: "Norsk",
    _L.DUTCH: "Nederlands",
    _L.GREEK: "Νέα Ελληνικά;",
    _L.UKRAINIAN: "Українська",
    _L.HUNGARIAN: "Magyar nyelv",
    _L.POLISH: "Polski",
    _L.TURKISH: "Türkçe",
    _L.SERBIAN: "Српски",
    _L.CROATIAN: "Hrvatski",
    _L.CZECH: "čeština",
    _L.PINYIN: "Pin yin",
    _L.SWAHILI: "Kiswahili",
    _L.YORUBA: "èdè Yorùbá",
    _L.HAUSA: "هَرْشٜن هَوْس",
    _L.AMHARIC: "አማርኛ",
    _L.OROMO: "afaan Oromoo",
    _L.ICELANDIC: "Íslenska",
    _L.LUXEMBOURGISH: "Lëtzebuergesch",
    _L.CATALAN: "Català",
    _L.ROMANIAN: "Românã",
    _L.SLOVAK: "Slovenčina",
    _L.BOSNIAN: "Босански",
    _L.MACEDONIAN: "Македонски",
    _L.SLOVENIAN: "Slovenščina",
    _L.BULGARIAN: "Български",
    _L.LATVIAN: "Latviski",
    _L.LITHUANIAN: "Lietuviškai",
    _L.ESTONIAN: "Eesti keel",
    _L.MALTESE: "Malti",
    _L.ALBANIAN: "Shqip",
    _L.PUNJABI: "ਪੰਜਾਬੀ",
    _L.JAVANESE: "ꦧꦱꦗꦮ",
    _L.TAMIL: "தமிழ்",
    _L.URDU: "اردو",
    _L.MARATHI: "मराठी",
    _L.TELUGU: "తెలుగు",
    _L.PASHTO: "پښتو",
    _L.LINGALA: "Lingála",
    _L.MALAYALAM: "മലയാളം",
    _L.HAKKA_CHIN: "客家话",
    _L.UZBEK: "Oʻzbekcha",
    _L.KANNADA: "ಕನ್ನಡ",
    _L.ODIA: "ଓଡ଼ିଆ",
    _L.IGBO: "Igbo",
    _L.ZULU: "isiZulu",
    _L.XHOSA: "isiXhosa",
    _L.KHMER: "ភាសាខ្មែរ",
    _L.LAO: "ພາສາລາວ",
    _L.GEORGIAN: "ქართული",
    _L.ARMENIAN: "Հայերեն",
    _L.TAJIK: "Тоҷикӣ",
    _L.TURKMEN: "Türkmençe",
    _L.KAZAKH: "Қазақша",
    _L.KYRGYZ: "Кыргызча",
    _L.MONGOLIAN: "Монгол хэл",
    _L.SCOTTISH_GAELIC: "Gàidhlig",
    _L.IRISH: "Gaeilge",
    _L.WELSH: "Cymraeg",
    _L.BASHKIR: "Башҡортса",
    _L.CEBUANO: "Bisaya",
    _L.ILOCANO: "Ilokano",
    _L.TATAR: "Татарча",
    _L.PALI: "पाऴि",
    _L.KINYARWANDA: "Ikinyarwanda",
    _L.BELARUSIAN: "Беларуская",
    _L.MALAGASY: "Malagasy",
    _L.TUVALUAN: "Te Ggana Tuuvalu",
    _L.MARSHALLESE: "Kajin M̧ajeļ",
    _L.CHAMORRO: "Chamoru",
    _L.SAMOAN: "Gagana Samoa",
    _L.TONGAN: "Lea faka-Tonga",
    _L.MAORI: "Māori",
    _L.TOK_PISIN: "Tok Pisin",
    _L.CHUVASH: "Чӑвашла",
    _L.KOMI: "Коми кыв",
    _L.MANX: "Gaelg",
}


def language_name(code: LanguageCode | str) -> str:
    """Return the native display name of a language code, or "未知" if unknown."""
    try:
        key = LanguageCode(code)
    except ValueError:
        return UNKNOWN_LANGUAGE_NAME
    return _NAMES.get(key, UNKNOWN_LANGUAGE_NAME)