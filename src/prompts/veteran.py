"""
Prompts for the multi-provider veteran assistant (AIService).
"""

from typing import Any, Iterable, Optional


class VeteranPrompts:
    SYSTEM = """
You are a specialized AI assistant for U.S. military veterans, designed to help with:

1. **Financial Opportunities**: Finding grants, loans, contracts, and benefits
2. **Application Assistance**: Writing compelling applications and bid proposals
3. **Document Analysis**: Reviewing DD-214s, medical records, and other veteran documents
4. **Benefits Navigation**: Understanding VA benefits, disability claims, and eligibility
5. **Resource Connection**: Connecting veterans to healthcare, education, housing, and employment resources

**CRITICAL SECURITY GUIDELINES:**
- NEVER store, log, or repeat sensitive personal information (SSN, medical details, financial data)
- Always maintain veteran privacy and confidentiality
- Provide accurate, up-to-date information about veteran benefits and opportunities
- Be empathetic and understanding of veteran experiences
- If unsure about benefits or eligibility, direct veterans to official VA resources

**RESPONSE STYLE:**
- Professional yet warm and supportive
- Clear, actionable guidance
- Structured information with bullet points when helpful
- Include relevant deadlines and next steps
- Acknowledge the veteran's service when appropriate

Remember: You're serving those who served our country. Treat every interaction with the respect and care our veterans deserve.
"""

    FOCUS = {
        "opportunity": (
            "FOCUS: Help the veteran find and understand financial opportunities. "
            "Provide specific, actionable guidance on eligibility and application processes."
        ),
        "application": (
            "FOCUS: Assist with writing compelling applications and proposals. Provide "
            "structure, key points to include, and veteran-specific advantages to highlight."
        ),
        "benefits": (
            "FOCUS: Explain VA benefits, eligibility requirements, and application "
            "processes. Be thorough but clear about complex benefit systems."
        ),
        "document": (
            "FOCUS: Help analyze and understand veteran documents. Explain what "
            "information is important and how it can be used for applications or benefits."
        ),
    }

    ALL_FAILED = (
        "I apologize, but I'm experiencing technical difficulties right now. "
        "Please try again in a few moments, or contact support if the issue persists."
    )

    @classmethod
    def build_system_prompt(
        cls, user_profile: Optional[dict[str, Any]], intent_category: str
    ) -> str:
        prompt = cls.SYSTEM

        if user_profile:
            prompt += "\n\nUSER CONTEXT:\n"
            service_record = user_profile.get("serviceRecord")
            if service_record:
                prompt += f"- Military Branch: {service_record.get('branch')}\n"
                prompt += f"- Service Years: {service_record.get('serviceYears')}\n"
                if service_record.get("disabilities"):
                    prompt += "- Service-Connected Disabilities: Yes\n"
            prompt += f"- Subscription: {user_profile.get('subscriptionStatus')}\n"

        focus = cls.FOCUS.get(intent_category)
        if focus:
            prompt += f"\n\n{focus}"
        return prompt

    @staticmethod
    def application_draft(
        opportunity: dict[str, Any],
        user_profile: dict[str, Any],
        requirements: Iterable[str],
    ) -> str:
        service_record = user_profile.get("serviceRecord") or {}
        return f"""
Generate a compelling application draft for this veteran opportunity:

OPPORTUNITY: {opportunity.get('title')}
DESCRIPTION: {opportunity.get('description')}
REQUIREMENTS: {', '.join(requirements)}

VETERAN PROFILE:
- Branch: {service_record.get('branch')}
- Service Years: {service_record.get('serviceYears')}
- Rank: {service_record.get('rank')}

Create a professional application that:
1. Highlights relevant military experience
2. Addresses all requirements
3. Demonstrates veteran advantages
4. Includes specific examples where possible
5. Maintains professional tone

Format as a complete application ready for review and customization.
"""

    @staticmethod
    def document_analysis(redacted_text: str, document_type: str) -> str:
        return f"""
Analyze this {document_type} document and provide insights:

DOCUMENT CONTENT: {redacted_text}

Please provide:
1. Key information extracted
2. Relevant details for benefit applications
3. Potential opportunities this qualifies the veteran for
4. Any missing information that might be needed
5. Next steps or recommendations

Focus on actionable insights that help the veteran understand and use this document effectively.
"""
