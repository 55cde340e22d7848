"""
Label synonym tables.

Every list is ordered: the first synonym that yields an accepted value wins,
so more specific wordings come before generic ones ("nr faktury" before
"nr"). Changing the order changes extraction results.
"""

# =============================================================================
# INVOICE
# =============================================================================

INVOICE_NUMBER_LABELS = (
    'nr faktury', 'numer faktury', 'faktura nr', 'fv nr',
    'invoice no', 'invoice number', 'nr', 'numer', 'fv', 'invoice',
)

ISSUE_DATE_LABELS = (
    'data wystawienia', 'data wystaw', 'data faktury',
    'issue date', 'invoice date', 'data', 'wystawienia',
)

DUE_DATE_LABELS = (
    'termin płatności', 'termin płat', 'due date',
    'płatność do', 'termin', 'płatność',
)

NET_LABELS = ('netto', 'wartość netto', 'net amount', 'bez vat')

VAT_LABELS = ('vat', 'podatek vat', 'vat amount', 'podatek')

GROSS_LABELS = ('brutto', 'wartość brutto', 'gross amount', 'razem', 'suma')

NIP_LABELS = ('nip', 'tax id', 'numer nip', 'tax number')

BUYER_NAME_LABELS = (
    'nabywca', 'odbiorca', 'klient', 'buyer', 'customer',
    'nazwa nabywcy', 'nazwa klienta',
)

BUYER_ADDRESS_LABELS = ('adres nabywcy', 'adres', 'address', 'ulica', 'miejsce')

# =============================================================================
# EXPENSE
# =============================================================================

DOCUMENT_NUMBER_LABELS = (
    'nr', 'numer', 'paragon', 'rachunek', 'faktura',
    'receipt', 'document number', 'transaction',
)

EXPENSE_DATE_LABELS = ('data', 'date', 'dzień', 'czas', 'godzina')

EXPENSE_GROSS_LABELS = (
    'kwota', 'suma', 'razem', 'total', 'amount', 'cena', 'koszt', 'brutto',
)

EXPENSE_VAT_LABELS = ('kwota vat', 'podatek vat', 'vat amount', 'ptu', 'vat')

VAT_RATE_LABELS = ('stawka vat', 'stawka', 'vat rate')

CONTRACTOR_LABELS = (
    'sprzedawca', 'sklep', 'firma', 'kontrahent',
    'seller', 'nazwa', 'company', 'business',
)

DESCRIPTION_LABELS = (
    'opis', 'description', 'towar', 'usługa',
    'product', 'service', 'nazwa', 'name',
)

# =============================================================================
# EXPENSE CATEGORIES
# =============================================================================

# Checked in order; the first category with any keyword hit wins
CATEGORY_KEYWORDS = (
    ('paliwo', ('stacja', 'paliwo', 'benzyna', 'diesel', 'orlen', 'bp', 'shell', 'lotos')),
    ('biuro', ('papier', 'długopis', 'biuro', 'księgarnia', 'materiały', 'biurowe')),
    ('telefon', ('telefon', 'internet', 'komórka', 'plus', 'orange', 't-mobile', 'play')),
    ('transport', ('taxi', 'uber', 'pociąg', 'autobus', 'bilet', 'parking')),
    ('jedzenie', ('restauracja', 'kawiarnia', 'jedzenie', 'obiad', 'śniadanie', 'kawa')),
    ('usługi', ('usługa', 'doradztwo', 'konsultacja', 'serwis', 'naprawa')),
)

EXPENSE_CATEGORIES = tuple(name for name, _ in CATEGORY_KEYWORDS)

# Keywords this short would hit inside unrelated words ("bp" in "bpmn")
WHOLE_WORD_MAX_LENGTH = 4

# Only explicit seller wording; a bare "nip" belongs to the buyer rule
SELLER_NIP_LABELS = ('nip sprzedawcy', 'sprzedawca nip', 'seller nip', 'seller tax id')

SELLER_NAME_LABELS = ('sprzedawca', 'wystawca', 'nazwa sprzedawcy', 'seller')

SELLER_ADDRESS_LABELS = ('adres sprzedawcy', 'seller address')

SALE_DATE_LABELS = (
    'data sprzedaży', 'data dostawy', 'date of sale', 'sale date', 'sprzedaż',
)
