# ============================================================================
# src/lab_triage/constants/sample_types.py
# ============================================================================
"""
Sample Types
- Section headings recognised on Chilean reports ("Tipo de Muestra : X")
- Parameters that are only clinically valid from one sample source
"""

from typing import Optional

# Longest first so "SANGRE TOTAL + E.D.T.A." wins over "SANGRE TOTAL"
SAMPLE_TYPES = (
    "SANGRE TOTAL + E.D.T.A.",
    "SUERO Y PLASMA (HEPARINA DE LITIO)",
    "SANGRE TOTAL",
    "SUERO",
    "ORINA",
)

DEFAULT_SAMPLE_TYPE = "SUERO"

# Differential and CBC parameters: whole blood only
BLOOD_ONLY_PARAMETERS = frozenset({
    "LINFOCITOS", "NEUTROFILOS", "MONOCITOS", "EOSINOFILOS", "BASOFILOS",
    "BACILIFORMES", "JUVENILES", "MIELOCITOS", "PROMIELOCITOS", "BLASTOS",
    "HEMATOCRITO", "HEMOGLOBINA", "V.C.M", "V.C.M.", "H.C.M", "H.C.M.",
    "C.H.C.M", "C.H.C.M.", "RECUENTO PLAQUETAS", "RECUENTO GLOBULOS ROJOS",
    "RECUENTO GLOBULOS BLANCOS", "V.H.S.",
    "lymphocytes", "neutrophils", "monocytes", "eosinophils", "basophils", "bands",
    "hematocrit", "hemoglobin", "mcv", "mch", "mchc", "platelets",
    "red_blood_cells", "white_blood_cells", "esr", "hba1c",
})

# Urinalysis parameters: urine only
URINE_ONLY_PARAMETERS = frozenset({
    "GLUCOSA", "PROTEINAS", "CETONAS", "BILIRRUBINA", "UROBILINOGENO",
    "NITRITOS", "SANGRE EN ORINA", "LEUCOCITOS POR CAMPO", "HEMATIES POR CAMPO",
    "CELULAS EPITELIALES", "MUCUS", "CRISTALES", "CILINDROS", "BACTERIAS",
    "COLOR", "ASPECTO", "DENSIDAD", "PH",
    "urine_glucose", "urine_protein", "urine_ketones", "urine_bilirubin",
    "urine_urobilinogen", "urine_nitrites", "urine_blood", "urine_leukocytes",
    "urine_rbc_per_field", "urine_wbc_per_field", "urine_epithelial_cells",
    "urine_mucus", "urine_crystals", "urine_casts", "urine_bacteria",
    "urine_color", "urine_aspect", "urine_density", "urine_ph",
})


def preferred_sample_type(key: str) -> Optional[str]:
    """
    Sample source a parameter must come from, if restricted.

    Args:
        key: Marker system code or upper-case exam name
    """
    if key in BLOOD_ONLY_PARAMETERS or key.upper() in BLOOD_ONLY_PARAMETERS:
        return "SANGRE TOTAL"
    if key in URINE_ONLY_PARAMETERS or key.upper() in URINE_ONLY_PARAMETERS:
        return "ORINA"
    return None


def sample_type_matches(sample_type: Optional[str], preferred: Optional[str]) -> bool:
    """SANGRE TOTAL + E.D.T.A. counts as SANGRE TOTAL."""
    if not preferred or not sample_type:
        return False
    return sample_type.upper().startswith(preferred)
