def edit_property(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/edit"


def risk_assessment(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/risk-assessment"


def financial_efficiency(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/financial-efficiency"


def documents(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/documents"


def maintenance(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/maintenance"


def coverage(property_id: int) -> str:
    return f"/dashboard/properties/{property_id}/coverage"
