from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CurrencyModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    code: str
    symbol: str
    name: str
    country_code: str
    flag: str

    def __eq__(self, other):
        return isinstance(other, CurrencyModel) and other.code == self.code

    def __hash__(self):
        return hash(self.code)


# African currencies first, then international ones
SUPPORTED_CURRENCIES = [
    CurrencyModel(code="GHS", symbol="GH₵", name="Ghanaian Cedi", country_code="+233", flag="🇬🇭"),
    CurrencyModel(code="NGN", symbol="₦", name="Nigerian Naira", country_code="+234", flag="🇳🇬"),
    CurrencyModel(code="KES", symbol="KSh", name="Kenyan Shilling", country_code="+254", flag="🇰🇪"),
    CurrencyModel(code="ZAR", symbol="R", name="South African Rand", country_code="+27", flag="🇿🇦"),
    CurrencyModel(code="EGP", symbol="E£", name="Egyptian Pound", country_code="+20", flag="🇪🇬"),
    CurrencyModel(code="TZS", symbol="TSh", name="Tanzanian Shilling", country_code="+255", flag="🇹🇿"),
    CurrencyModel(code="UGX", symbol="USh", name="Ugandan Shilling", country_code="+256", flag="🇺🇬"),
    CurrencyModel(code="RWF", symbol="FRw", name="Rwandan Franc", country_code="+250", flag="🇷🇼"),
    CurrencyModel(code="ETB", symbol="Br", name="Ethiopian Birr", country_code="+251", flag="🇪🇹"),
    CurrencyModel(code="MAD", symbol="DH", name="Moroccan Dirham", country_code="+212", flag="🇲🇦"),
    CurrencyModel(code="XOF", symbol="CFA", name="West African CFA Franc", country_code="+225", flag="🇨🇮"),
    CurrencyModel(code="XAF", symbol="FCFA", name="Central African CFA Franc", country_code="+237", flag="🇨🇲"),
    CurrencyModel(code="USD", symbol="$", name="US Dollar", country_code="+1", flag="🇺🇸"),
    CurrencyModel(code="GBP", symbol="£", name="British Pound", country_code="+44", flag="🇬🇧"),
    CurrencyModel(code="EUR", symbol="€", name="Euro", country_code="+49", flag="🇪🇺"),
]

DEFAULT_CURRENCY = SUPPORTED_CURRENCIES[1]

_SYMBOLS = {c.code: c.symbol for c in SUPPORTED_CURRENCIES}


def currency_symbol(code: str) -> str:
    return _SYMBOLS.get(code, code)
