"""
Extraction Record Data Classes.

Typed records produced by the field extractor. Every business field is
Optional: None means "not recognized", never zero or an empty string.

Classes:
    LineItem: One invoice position
    VatBreakdown: Net, VAT and gross summed for one VAT rate
    ParsedInvoiceRecord: Invoice header, totals and positions
    ParsedExpenseRecord: Receipt/expense fields
    BoundingBox: Pixel rectangle of a recognized value
    RecognizedField: Audit-trail entry for one matched label
    Validation: Result of one consistency check
"""

from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Any, Dict, List, Optional


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class _Record:
    """
    Shared behaviour of the parsed records.

    Subclasses declare JSON_KEYS (attribute -> contract key),
    SCORED_FIELDS, the fields counted for confidence, and LIST_TYPES, the
    element type of each list attribute.
    """

    JSON_KEYS: Dict[str, str] = {}
    SCORED_FIELDS: tuple = ()
    LIST_TYPES: Dict[str, Any] = {}

    @property
    def fields(self) -> Dict[str, Any]:
        """Scored fields and their values, recognized or not."""
        return {name: getattr(self, name) for name in self.SCORED_FIELDS}

    @property
    def recognized_count(self) -> int:
        return sum(1 for value in self.fields.values() if value is not None)

    @property
    def expected_count(self) -> int:
        return len(self.SCORED_FIELDS)

    def is_empty(self) -> bool:
        """True when no field at all (scored or not) was recognized."""
        return all(
            getattr(self, f.name) in (None, [])
            for f in dataclass_fields(self)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with contract keys, omitting unrecognized fields."""
        data = {}
        for f in dataclass_fields(self):
            value = getattr(self, f.name)
            if f.name in self.LIST_TYPES:
                if value:
                    data[self.JSON_KEYS[f.name]] = [item.to_dict() for item in value]
                continue
            if value is not None:
                data[self.JSON_KEYS[f.name]] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Rebuild a record from its to_dict() form."""
        kwargs = {}
        for name, key in cls.JSON_KEYS.items():
            if key not in data:
                continue
            if name in cls.LIST_TYPES:
                kwargs[name] = [cls.LIST_TYPES[name].from_dict(item) for item in data[key]]
            else:
                kwargs[name] = data[key]
        return cls(**kwargs)


@dataclass
class LineItem:
    """
    A single invoice position.

    Example:
        >>> LineItem(name="Usługa programistyczna", quantity=10, unit="h",
        ...          net_price=150.0, vat_rate="23", line_gross=1845.0)
    """
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    net_price: Optional[float] = None
    vat_rate: Optional[str] = None
    line_gross: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'quantity': self.quantity,
            'unit': self.unit,
            'netPrice': self.net_price,
            'vatRate': self.vat_rate,
            'lineGross': self.line_gross,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            name=data['name'],
            quantity=data.get('quantity'),
            unit=data.get('unit'),
            net_price=data.get('netPrice'),
            vat_rate=data.get('vatRate'),
            line_gross=data.get('lineGross'),
        )


@dataclass
class VatBreakdown:
    """
    Invoice positions summed per VAT rate.

    Example:
        >>> VatBreakdown(rate="23", net=2000.0, vat=460.0, gross=2460.0)
    """
    rate: str
    net: float
    vat: float
    gross: float

    def to_dict(self) -> Dict[str, Any]:
        return {'rate': self.rate, 'net': self.net, 'vat': self.vat, 'gross': self.gross}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VatBreakdown':
        return cls(rate=data['rate'], net=data['net'], vat=data['vat'], gross=data['gross'])


@dataclass
class ParsedInvoiceRecord(_Record):
    """
    Fields extracted from an invoice.

    Dates keep the text exactly as printed (e.g. "15.01.2024"); the ISO
    form is only used for validation. Seller name, address and sale date
    are reported when printed but do not count towards confidence.
    """
    invoice_number: Optional[str] = None
    issue_date: Optional[str] = None
    due_date: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_nip: Optional[str] = None
    buyer_address: Optional[str] = None
    total_net: Optional[float] = None
    total_vat: Optional[float] = None
    total_gross: Optional[float] = None
    items: List[LineItem] = field(default_factory=list)
    seller_name: Optional[str] = None
    seller_nip: Optional[str] = None
    seller_address: Optional[str] = None
    sale_date: Optional[str] = None
    vat_breakdown: List[VatBreakdown] = field(default_factory=list)
    currency: Optional[str] = None

    JSON_KEYS = {
        'invoice_number': 'invoiceNumber',
        'issue_date': 'issueDate',
        'due_date': 'dueDate',
        'buyer_name': 'buyerName',
        'buyer_nip': 'buyerNIP',
        'buyer_address': 'buyerAddress',
        'total_net': 'totalNet',
        'total_vat': 'totalVat',
        'total_gross': 'totalGross',
        'items': 'items',
        'seller_name': 'sellerName',
        'seller_nip': 'sellerNIP',
        'seller_address': 'sellerAddress',
        'sale_date': 'saleDate',
        'vat_breakdown': 'byVat',
        'currency': 'currency',
    }

    SCORED_FIELDS = (
        'invoice_number', 'issue_date', 'due_date',
        'buyer_name', 'buyer_nip', 'buyer_address',
        'total_net', 'total_vat', 'total_gross',
    )

    LIST_TYPES = {'items': LineItem, 'vat_breakdown': VatBreakdown}


@dataclass
class ParsedExpenseRecord(_Record):
    """Fields extracted from a receipt or other expense document."""
    document_number: Optional[str] = None
    date: Optional[str] = None
    contractor_name: Optional[str] = None
    contractor_nip: Optional[str] = None
    category: Optional[str] = None
    net_amount: Optional[float] = None
    vat_amount: Optional[float] = None
    gross_amount: Optional[float] = None
    vat_rate: Optional[str] = None
    description: Optional[str] = None

    JSON_KEYS = {
        'document_number': 'documentNumber',
        'date': 'date',
        'contractor_name': 'contractorName',
        'contractor_nip': 'contractorNIP',
        'category': 'category',
        'net_amount': 'netAmount',
        'vat_amount': 'vatAmount',
        'gross_amount': 'grossAmount',
        'vat_rate': 'vatRate',
        'description': 'description',
    }

    SCORED_FIELDS = tuple(JSON_KEYS)


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_corners(cls, x1: int, y1: int, x2: int, y2: int) -> 'BoundingBox':
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def to_dict(self) -> Dict[str, int]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> 'BoundingBox':
        return cls(x=data['x'], y=data['y'], width=data['width'], height=data['height'])


@dataclass
class RecognizedField:
    """
    One label/value pair found in the text.

    Attributes:
        label: Record attribute the value was matched for (e.g. "total_net")
        value: The raw matched text
        page: Page number, when known
        bounding_box: Pixel box of the value on the page, OCR only
        confidence: Mean OCR confidence of the value's words (0..1)
    """
    label: str
    value: str
    page: Optional[int] = None
    bounding_box: Optional[BoundingBox] = None
    confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'label': self.label,
            'value': self.value,
            'page': self.page,
            'boundingBox': self.bounding_box.to_dict() if self.bounding_box else None,
            'confidence': self.confidence,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RecognizedField':
        box = data.get('boundingBox')
        return cls(
            label=data['label'],
            value=data['value'],
            page=data.get('page'),
            bounding_box=BoundingBox.from_dict(box) if box else None,
            confidence=data.get('confidence'),
        )


@dataclass(frozen=True)
class Validation:
    name: str
    ok: bool
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'name': self.name, 'ok': self.ok, 'details': self.details})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Validation':
        return cls(name=data['name'], ok=data['ok'], details=data.get('details'))
