"""
GST jurisdiction resolution and tax splitting.

- Normalizes a party's state for comparison, falling back to the state
  code embedded in the first two characters of its GSTIN
- Decides inter-state (IGST) vs intra-state (CGST + SGST)
- Splits a tax amount accordingly, to the paisa
"""
import logging
from decimal import Decimal
from typing import NamedTuple, Optional

from gstcore.core.money import ZERO, ceil_to_cent, round_money


logger = logging.getLogger(__name__)


# GST State Code mapping, "01".."37".
# 28 and 37 both read "Andhra Pradesh": 28 is the pre-bifurcation code still
# printed on older GSTINs, so a GSTIN starting with either resolves to the
# same state and compares equal.
GST_STATE_CODES = {
    "01": "Jammu and Kashmir", "02": "Himachal Pradesh", "03": "Punjab",
    "04": "Chandigarh", "05": "Uttarakhand", "06": "Haryana",
    "07": "Delhi", "08": "Rajasthan", "09": "Uttar Pradesh",
    "10": "Bihar", "11": "Sikkim", "12": "Arunachal Pradesh",
    "13": "Nagaland", "14": "Manipur", "15": "Mizoram",
    "16": "Tripura", "17": "Meghalaya", "18": "Assam",
    "19": "West Bengal", "20": "Jharkhand", "21": "Odisha",
    "22": "Chhattisgarh", "23": "Madhya Pradesh", "24": "Gujarat",
    "25": "Daman and Diu", "26": "Dadra and Nagar Haveli",
    "27": "Maharashtra", "28": "Andhra Pradesh", "29": "Karnataka",
    "30": "Goa", "31": "Lakshadweep", "32": "Kerala",
    "33": "Tamil Nadu", "34": "Puducherry", "35": "Andaman and Nicobar Islands",
    "36": "Telangana", "37": "Andhra Pradesh",
}


class GSTSplit(NamedTuple):
    igst: Decimal
    cgst: Decimal
    sgst: Decimal

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst


def _state_from_gstin(gstin: Optional[str]) -> Optional[str]:
    if gstin and len(gstin) >= 2:
        return GST_STATE_CODES.get(gstin[:2])
    return None


def normalized_state(state: Optional[str], gstin: Optional[str]) -> Optional[str]:
    """
    Normalize state for jurisdiction comparison.

    Uses the state name when one is given (trimmed, lower-cased), otherwise
    the GSTIN state code. Returns None when neither resolves.
    """
    if state:
        trimmed = state.strip()
        if trimmed:
            return trimmed.lower()

    state_name = _state_from_gstin(gstin)
    if state_name:
        return state_name.lower()
    return None


def resolve_state_name(state: Optional[str], gstin: Optional[str]) -> str:
    """Display form of the state (original case), or empty string."""
    if state:
        trimmed = state.strip()
        if trimmed:
            return trimmed
    return _state_from_gstin(gstin) or ""


def is_inter_state(
    from_state: Optional[str],
    to_state: Optional[str],
    from_gstin: Optional[str] = None,
    to_gstin: Optional[str] = None,
) -> bool:
    """
    True if the supply crosses a state boundary (IGST), False for CGST + SGST.

    If either side cannot be resolved the supply is treated as intra-state.
    """
    company = normalized_state(from_state, from_gstin)
    party = normalized_state(to_state, to_gstin)

    if company is None or party is None:
        logger.warning(
            f"Could not resolve {'company' if company is None else 'party'} state "
            f"(from_state={from_state!r}, to_state={to_state!r}), treating supply as intra-state"
        )
        return False

    return company != party


def split_amount(total_tax: Decimal, inter_state: bool) -> GSTSplit:
    """
    Split a tax amount into IGST or CGST + SGST.

    An odd paisa on an intra-state split goes to CGST so that
    cgst + sgst == total_tax exactly.
    """
    total_tax = round_money(total_tax)
    if inter_state:
        return GSTSplit(igst=total_tax, cgst=ZERO, sgst=ZERO)

    cgst = ceil_to_cent(total_tax / 2)
    sgst = total_tax - cgst
    return GSTSplit(igst=ZERO, cgst=cgst, sgst=sgst)


def split_gst(
    total_tax: Decimal,
    from_state: Optional[str],
    to_state: Optional[str],
    from_gstin: Optional[str] = None,
    to_gstin: Optional[str] = None,
) -> GSTSplit:
    """Split total GST into IGST or CGST + SGST based on the two jurisdictions."""
    return split_amount(total_tax, is_inter_state(from_state, to_state, from_gstin, to_gstin))
