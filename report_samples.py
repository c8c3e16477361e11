"""
Built-in sample data, used by the demo endpoint and the command line.
"""

from datetime import date, timedelta

from report_models import (
    Category, ConfidenceLevel, ConfidenceTotals, EntityInfo, Provenance,
    Record, ReportData, RiskLevel, Totals,
)

SAMPLE_SUPPLIERS = (
    ("12345678000190", "Distribuidora Alfa Ltda"),
    ("98765432000110", "Comercial Beta S.A."),
    ("45678912000133", "Atacado Gama Eireli"),
    ("32165498000177", "Industria Delta Ltda"),
)

SAMPLE_CATEGORIES = (
    # name, legal basis, description, risk, item code, cfop, cst, rate, record count, base value
    ("PIS/COFINS monophasic", "Law 10,147/2000",
     "Products under the monophasic regime were taxed again on resale. The amounts "
     "paid on resale can be recovered for the last five years.",
     RiskLevel.LOW, "3004.90.99", "5405", "04", 9.25, 24, 180.0),
    ("ICMS-ST", "LC 87/1996, art. 10",
     "Tax substitution paid on a presumed base above the actual sale price.",
     RiskLevel.MEDIUM, "2202.10.00", "5405", "60", 18.0, 9, 320.0),
    ("IPI on inputs", "Decree 7,212/2010, art. 226", None,
     RiskLevel.HIGH, "8471.30.12", "1101", "50", 5.0, 3, 95.5),
)

CONFIDENCE_CYCLE = (ConfidenceLevel.HIGH, ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM, ConfidenceLevel.LOW)


def _sample_records(index, item_code, cfop, cst, rate, count, base_value, start):
    records = []
    for n in range(count):
        issuer_id, issuer_name = SAMPLE_SUPPLIERS[(index + n) % len(SAMPLE_SUPPLIERS)]
        credit = round(base_value * (1 + (n * 7 % 11) / 10), 2)
        number = f"{index + 1}{n + 1:05d}"
        records.append(Record(
            document_key=f"3524{issuer_id}55001{number.zfill(9)}1{number.zfill(8)}"[:44].ljust(44, '0'),
            document_number=number,
            issuer_id=issuer_id,
            issuer_name=issuer_name,
            issue_date=start + timedelta(days=(n * 5) % 180),
            item_code=item_code,
            operation_code=cfop,
            tax_situation_code=cst,
            rate=rate,
            confidence_level=CONFIDENCE_CYCLE[n % len(CONFIDENCE_CYCLE)],
            credit_value=credit,
            recommended_action="File a rectifying return (PER/DCOMP) for the period",
            document_value=round(credit / rate * 100, 2),
        ))
    return records


def sample_report_data() -> ReportData:
    """A consistent three-category report with enough records to paginate."""
    start, end = date(2024, 1, 1), date(2024, 6, 30)
    categories = []
    tiers = {level: 0.0 for level in ConfidenceLevel}
    for index, (name, basis, description, risk, item, cfop, cst, rate, count, base) in enumerate(SAMPLE_CATEGORIES):
        records = _sample_records(index, item, cfop, cst, rate, count, base, start)
        for record in records:
            tiers[record.confidence_level] += record.credit_value
        categories.append(Category(
            name=name,
            total_value=round(sum(record.credit_value for record in records), 2),
            legal_basis=basis,
            legal_basis_description=description,
            risk_level=risk,
            records=records,
        ))

    grand_total = round(sum(category.total_value for category in categories), 2)
    return ReportData(
        report_id="RPT-SAMPLE-001",
        period_start=start,
        period_end=end,
        subject=EntityInfo(
            legal_name="Farmacia Exemplo Comercio de Medicamentos Ltda",
            trade_name="Farmacia Exemplo",
            tax_id="11222333000181",
            regime="presumido",
        ),
        totals=Totals(
            grand_total=grand_total,
            by_confidence_tier=ConfidenceTotals(
                high=round(tiers[ConfidenceLevel.HIGH], 2),
                medium=round(tiers[ConfidenceLevel.MEDIUM], 2),
                low=round(tiers[ConfidenceLevel.LOW], 2),
            ),
            annual_savings_min=round(grand_total * 1.6, 2),
            annual_savings_max=round(grand_total * 2.2, 2),
        ),
        categories=categories,
        recommendations=[
            "Recover the monophasic PIS/COFINS paid on resale through PER/DCOMP.",
            "Review the ICMS-ST presumed base with the state tax authority.",
            "Update the product register so monophasic items are flagged at sale.",
            "Validate the IPI credit on inputs with a tax lawyer before filing.",
        ],
        disclaimers=["Supplier data was taken from the invoices as issued."],
        provenance=Provenance(documents_analyzed=412, rules_applied=37),
    )
