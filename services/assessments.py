ASSESSMENT_PRICE = 5000

ASSESSMENTS = [
    {
        "id": "general-health-assessment",
        "name": "General Health Assessment",
        "category": "general",
        "duration": 60,
        "description": "Comprehensive health evaluation with vital signs monitoring",
    },
    {
        "id": "elderly-care-assessment",
        "name": "Elderly Care Assessment",
        "category": "specialized",
        "duration": 90,
        "description": "Specialized assessment for seniors with mobility evaluation",
    },
    {
        "id": "chronic-condition-assessment",
        "name": "Chronic Condition Assessment",
        "category": "specialized",
        "duration": 75,
        "description": "Assessment for patients with chronic health conditions",
    },
    {
        "id": "post-surgery-assessment",
        "name": "Post-Surgery Assessment",
        "category": "specialized",
        "duration": 60,
        "description": "Recovery monitoring and wound assessment",
    },
    {
        "id": "mental-health-screening",
        "name": "Mental Health Screening",
        "category": "specialized",
        "duration": 60,
        "description": "Confidential mental health and wellbeing assessment",
    },
    {
        "id": "maternal-health-assessment",
        "name": "Maternal Health Assessment",
        "category": "specialized",
        "duration": 75,
        "description": "Prenatal and postnatal health assessment",
    },
    {
        "id": "pediatric-assessment",
        "name": "Pediatric Health Assessment",
        "category": "specialized",
        "duration": 60,
        "description": "Child-friendly health assessment and development screening",
    },
    {
        "id": "routine-checkup",
        "name": "Routine Health Check-up",
        "category": "routine",
        "duration": 45,
        "description": "Regular preventive health assessment and wellness check",
    },
    {
        "id": "emergency-assessment",
        "name": "Emergency Health Assessment",
        "category": "emergency",
        "duration": 45,
        "description": "Urgent assessment for non-life-threatening emergencies",
        "availability": "24/7",
    },
]

_BY_ID = {a["id"]: a for a in ASSESSMENTS}


def list_assessments():
    return [dict(a, price=ASSESSMENT_PRICE) for a in ASSESSMENTS]


def get_assessment(assessment_id: str):
    a = _BY_ID.get(assessment_id)
    return dict(a, price=ASSESSMENT_PRICE) if a else None
