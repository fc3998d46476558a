from pethealth.domain.models import ClinicalContext


TRIAGE_INSTRUCTIONS = (
    "You are an expert veterinary diagnostic assistant. Your role is to help pet owners understand "
    "potential health issues based on symptoms they observe in their pets.\n\n"
    "IMPORTANT GUIDELINES:\n"
    "1. Always emphasize that your analysis is NOT a substitute for professional veterinary care\n"
    "2. Recommend seeing a veterinarian for serious symptoms\n"
    "3. Consider species-specific conditions and treatments\n"
    "4. Be clear about uncertainty when symptoms could indicate multiple conditions\n"
    "5. Provide practical home care advice when appropriate\n"
    "6. Flag emergency situations clearly"
)


def build_schema_instructions() -> str:
    return (
        "Respond ONLY with a valid JSON object. Do NOT include any markdown, code fences, or explanations. "
        "JSON keys: possibleConditions (array of objects), recommendedActions (array of strings), "
        "medications (array of objects), warningSignsToWatch (array of strings), "
        "homeCareTips (array of strings), urgency (one of 'Low', 'Medium', 'High', 'Emergency'), "
        "shouldSeeVet (boolean), timeframe (string, e.g. 'within 24 hours', 'immediately'), "
        "disclaimer (string).\n"
        "Each possibleConditions object MUST have: name (string), probability (one of 'Low', 'Medium', 'High'), "
        "description (string), commonIn (string, species/breeds commonly affected).\n"
        "Each medications object MUST have: name (string), type ('OTC' or 'Prescription'), "
        "dosage (string, general guidance), notes (string, important warnings).\n"
        "The disclaimer must state that this is AI-generated advice and should not replace "
        "professional veterinary consultation."
    )


SYSTEM_PROMPT = TRIAGE_INSTRUCTIONS + "\n\n" + build_schema_instructions()

RECOMMENDATIONS_SYSTEM_PROMPT = (
    "You are a veterinary care advisor. Provide helpful, accurate care recommendations "
    "while always emphasizing the importance of professional veterinary care."
)


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_user_prompt(context: ClinicalContext) -> str:
    species = context.species.value
    header = f"Please analyze the following symptoms for a {species}"
    if context.breed:
        header += f" ({context.breed})"
    header += ":"

    patient = ["**Patient Information:**", f"- Species: {species}"]
    if context.breed:
        patient.append(f"- Breed: {context.breed}")
    if context.age_years is not None:
        patient.append(f"- Age: {_format_number(context.age_years)} years")
    if context.weight_kg is not None:
        patient.append(f"- Weight: {_format_number(context.weight_kg)} kg")
    if context.gender:
        patient.append(f"- Gender: {context.gender}")

    sections = [header, "\n".join(patient)]

    symptom_lines = ["**Reported Symptoms:**"]
    symptom_lines.extend(f"{i}. {symptom}" for i, symptom in enumerate(context.symptoms, 1))
    sections.append("\n".join(symptom_lines))

    if context.duration:
        sections.append(f"**Duration of Symptoms:** {context.duration.value}")

    if context.additional_notes:
        sections.append(f"**Additional Information from Owner:**\n{context.additional_notes}")

    sections.append(
        "Please provide a comprehensive analysis including possible conditions, "
        "recommended actions, and whether the pet should see a veterinarian."
    )
    return "\n\n".join(sections)


def build_recommendations_prompt(species: str, condition: str) -> str:
    return f"""Provide detailed care recommendations for a {species} diagnosed with or showing signs of "{condition}".

Include:
1. Home care tips
2. Diet recommendations
3. Activity level guidance
4. Warning signs that require immediate vet attention
5. Typical recovery timeline
6. Preventive measures for the future

Respond ONLY with a JSON object with these keys:
condition (string), species (string), homeCare (array of strings), dietRecommendations (array of strings),
activityGuidance (string), warningSignsRequiringVet (array of strings), typicalRecoveryTime (string),
preventiveMeasures (array of strings), disclaimer (string)."""
