"""
Localized (Bahasa Indonesia) message templates.

Messages are presentation text; the status values they accompany are what
callers should branch on.
"""

from .models import Indicator, VelocityIndicator

# Indicator labels used in Z-score status messages
STATUS_LABELS = {
    Indicator.WEIGHT_FOR_AGE: "Berat badan menurut umur",
    Indicator.HEIGHT_FOR_AGE: "Tinggi badan menurut umur",
    Indicator.WEIGHT_FOR_HEIGHT: "Berat badan menurut tinggi badan",
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "Lingkar kepala menurut umur",
}

# Keyed by band, from lowest to highest Z-score
STATUS_TEMPLATES = {
    "very_low": "{label} sangat rendah (Z-score: {z}). Segera konsultasi dengan dokter.",
    "low": "{label} rendah (Z-score: {z}). Konsultasi dengan dokter diperlukan.",
    "below": "{label} sedikit di bawah normal (Z-score: {z}). Pantau terus perkembangannya.",
    "normal": "{label} normal (Z-score: {z}).",
    "above": "{label} sedikit di atas normal (Z-score: {z}). Pantau terus perkembangannya.",
    "high": "{label} tinggi (Z-score: {z}). Konsultasi dengan dokter diperlukan.",
    "very_high": "{label} sangat tinggi (Z-score: {z}). Segera konsultasi dengan dokter.",
}

TREND_NAMES = {
    Indicator.WEIGHT_FOR_AGE: "berat badan",
    Indicator.HEIGHT_FOR_AGE: "tinggi badan",
    Indicator.WEIGHT_FOR_HEIGHT: "proporsi berat-tinggi",
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "lingkar kepala",
}

TREND_INSUFFICIENT_DATA = "Perlu lebih banyak data untuk analisis trend."

TREND_RECOMMENDATIONS = {
    "high_risk_declining": (
        "{name} menunjukkan penurunan yang mengkhawatirkan. "
        "Segera konsultasi dengan dokter untuk evaluasi dan intervensi."
    ),
    "high_risk": (
        "{name} berada di luar rentang normal. "
        "Konsultasi dengan dokter diperlukan untuk evaluasi lebih lanjut."
    ),
    "consistent_decline": (
        "{name} menunjukkan tren penurunan yang konsisten. "
        "Perhatikan asupan nutrisi dan konsultasi dengan tenaga kesehatan."
    ),
    "improving": (
        "{name} menunjukkan perbaikan yang baik. "
        "Lanjutkan pola asuh dan nutrisi yang sudah diterapkan."
    ),
    "fluctuating": (
        "{name} menunjukkan fluktuasi. "
        "Pastikan konsistensi dalam pengukuran dan pola asuh anak."
    ),
    "stable_normal": (
        "{name} stabil dalam rentang normal. "
        "Pertahankan pola asuh dan nutrisi yang baik."
    ),
    "monitor": "Pantau terus perkembangan {name} anak secara rutin.",
}

VELOCITY_NAMES = {
    VelocityIndicator.WEIGHT: "berat badan",
    VelocityIndicator.HEIGHT: "tinggi badan",
    VelocityIndicator.HEAD_CIRCUMFERENCE: "lingkar kepala",
}

VELOCITY_UNITS = {
    VelocityIndicator.WEIGHT: "kg/bulan",
    VelocityIndicator.HEIGHT: "cm/bulan",
    VelocityIndicator.HEAD_CIRCUMFERENCE: "cm/bulan",
}

VELOCITY_INSUFFICIENT_DATA = (
    "Perlu minimal 2 data untuk menghitung kecepatan pertumbuhan."
)

VELOCITY_TEMPLATES = {
    "slow": (
        "Kecepatan pertumbuhan {name} lambat ({velocity}, {percent} dari normal). "
        "Perhatikan asupan nutrisi."
    ),
    "fast": (
        "Kecepatan pertumbuhan {name} cepat ({velocity}, {percent} dari normal). "
        "Pantau terus perkembangannya."
    ),
    "normal": "Kecepatan pertumbuhan {name} normal ({velocity}, {percent} dari normal).",
}

FALTERING_INDICATORS = {
    "weight_decline": "Penurunan berat badan yang konsisten",
    "height_decline": "Penurunan tinggi badan yang konsisten",
    "weight_low": "Berat badan di bawah -2 SD",
    "height_low": "Tinggi badan di bawah -2 SD",
}

FALTERING_RECOMMENDATIONS = {
    "severe": [
        "Segera konsultasi dengan dokter spesialis anak",
        "Evaluasi medis menyeluruh diperlukan",
    ],
    "moderate": [
        "Konsultasi dengan dokter dalam waktu dekat",
        "Evaluasi pola makan dan asupan nutrisi",
    ],
    "mild": [
        "Pantau pertumbuhan lebih ketat",
        "Perhatikan asupan nutrisi dan pola makan",
    ],
    "common": [
        "Lakukan pengukuran pertumbuhan lebih sering",
        "Dokumentasikan asupan makanan harian",
    ],
}

# Dashboard trend recommendations: indicator -> band -> text
SIMPLE_TREND_RECOMMENDATIONS = {
    Indicator.WEIGHT_FOR_AGE: {
        "alert_declining": (
            "Berat badan anak menurun. Segera konsultasi dengan dokter "
            "dan perhatikan asupan nutrisi."
        ),
        "warning": "Pantau berat badan anak secara rutin dan pastikan asupan nutrisi seimbang.",
        "improving": "Pertumbuhan berat badan menunjukkan perbaikan. Lanjutkan pola makan yang baik.",
        "normal": "Berat badan anak dalam kondisi normal. Lanjutkan pola makan sehat.",
    },
    Indicator.HEIGHT_FOR_AGE: {
        "alert": (
            "Tinggi badan anak perlu perhatian khusus. "
            "Konsultasi dengan dokter untuk evaluasi lebih lanjut."
        ),
        "warning": "Pantau tinggi badan anak dan pastikan asupan kalsium dan protein cukup.",
        "normal": "Tinggi badan anak berkembang dengan baik. Lanjutkan pola hidup sehat.",
    },
    Indicator.WEIGHT_FOR_HEIGHT: {
        "alert": "Proporsi berat dan tinggi badan perlu perhatian. Konsultasi dengan ahli gizi.",
        "warning": "Pantau proporsi berat dan tinggi badan anak secara rutin.",
        "normal": "Proporsi berat dan tinggi badan anak ideal. Pertahankan pola makan seimbang.",
    },
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: {
        "alert": "Lingkar kepala perlu evaluasi medis. Segera konsultasi dengan dokter.",
        "warning": "Pantau perkembangan lingkar kepala anak secara rutin.",
        "normal": "Perkembangan lingkar kepala anak normal.",
    },
}

NO_MEASUREMENTS = "Belum ada data pengukuran."

VALIDATION_ERRORS = {
    "weight": "Berat badan harus antara 0.1 - 50 kg",
    "height": "Tinggi badan harus antara 1 - 150 cm",
    "head_circumference": "Lingkar kepala harus antara 1 - 70 cm",
    "age_in_months": "Usia harus antara 0 - 60 bulan",
    "bmi": "Kombinasi berat dan tinggi badan tidak wajar (BMI terlalu ekstrem)",
}

SUMMARY_FALTERING_ALERT = "Terdeteksi gangguan pertumbuhan ({severity}): {indicators}"
SUMMARY_MPASI = "Pastikan anak mendapat MPASI yang bergizi seimbang."
SUMMARY_START_MEASURING = "Mulai lakukan pengukuran pertumbuhan anak secara rutin."
SUMMARY_MEASURE_ROUTINELY = (
    "Lakukan pengukuran pertumbuhan secara rutin untuk memantau perkembangan anak."
)

REMINDER_NO_RECORD = (
    "Belum ada data pengukuran. Mulai lakukan pengukuran pertumbuhan anak."
)
REMINDER_DUE = (
    "Sudah {days} hari sejak pengukuran terakhir. "
    "Saatnya mengukur pertumbuhan anak lagi."
)
