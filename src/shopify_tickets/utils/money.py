"""Arithmétique monétaire à deux décimales.

FR: Toutes les opérations arrondissent immédiatement leur résultat au centime
    (ROUND_HALF_UP) pour éviter que les écarts ne s'accumulent au fil d'une
    suite de calculs. Tout calcul monétaire du projet passe par ces fonctions.
EN: Every operation rounds its result to the cent (ROUND_HALF_UP) right away so
    that drift cannot accumulate across a sequence of computations.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Decimal | int | float | str


def to_decimal(value: Number) -> Decimal:
    """Convertit une valeur numérique en Decimal sans passer par l'expansion binaire."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_to_two_decimals(value: Number) -> Decimal:
    """Arrondit au centime / Rounds to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount: str | Number) -> Decimal:
    """Convertit un montant textuel Shopify (ex: ``"19.90"``) en Decimal arrondi.

    Raises:
        ValueError: Si le montant n'est pas numérique.
    """
    try:
        return round_to_two_decimals(str(amount).strip())
    except ArithmeticError as exc:
        msg = f"Montant invalide : {amount!r}"
        raise ValueError(msg) from exc


def safe_add(a: Number, b: Number) -> Decimal:
    return round_to_two_decimals(to_decimal(a) + to_decimal(b))


def safe_multiply(a: Number, b: Number) -> Decimal:
    return round_to_two_decimals(to_decimal(a) * to_decimal(b))


def safe_divide(a: Number, b: Number) -> Decimal:
    """Division arrondie au centime.

    Raises:
        ZeroDivisionError: Si le diviseur est nul.
    """
    divisor = to_decimal(b)
    if divisor == 0:
        msg = "Division d'un montant par zéro"
        raise ZeroDivisionError(msg)
    return round_to_two_decimals(to_decimal(a) / divisor)


def format_amount(value: Number) -> str:
    """Formate un montant avec deux décimales (``-0.00`` devient ``0.00``)."""
    rounded = round_to_two_decimals(value)
    if rounded == 0:
        rounded = ZERO
    return f"{rounded:.2f}"


def format_tax_rate(rate: Number) -> str:
    """Formate un taux fractionnaire en pourcentage entier (0.21 -> ``"21%"``)."""
    percent = (to_decimal(rate) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{percent}%"
