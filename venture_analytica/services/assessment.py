"""Founder behavioural questionnaire and its qualitative summary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class AssessmentQuestion:
    question: str
    options: Tuple[str, ...]
    trait: str


QUESTIONS: List[AssessmentQuestion] = [
    AssessmentQuestion(
        "When faced with a major setback, your first reaction is to:",
        (
            "Analyze what went wrong to prevent it in the future.",
            "Rally the team to find an immediate solution.",
            "Seek advice from mentors and advisors.",
            "Take a step back to reassess the overall strategy.",
        ),
        "Resilience & Problem-Solving",
    ),
    AssessmentQuestion(
        "You have a strong vision for your product, but key market feedback suggests a different direction. You:",
        (
            "Stick to your vision, believing the market will catch up.",
            "Conduct more research to validate the feedback before making changes.",
            "Pivot the product roadmap to align with the feedback.",
            "Try to find a compromise that incorporates feedback without losing the core vision.",
        ),
        "Adaptability & Vision",
    ),
    AssessmentQuestion(
        "When hiring a key team member, what do you prioritize most?",
        (
            "Raw talent and potential, even if they lack experience.",
            "Deep domain expertise and a proven track record.",
            "Cultural fit and alignment with the company's mission.",
            "A strong work ethic and ability to execute quickly.",
        ),
        "Team Building & Leadership",
    ),
    AssessmentQuestion(
        "How do you approach risk?",
        (
            "Avoid it whenever possible; stability is key.",
            "Take calculated risks where the potential reward outweighs the downside.",
            "Embrace high-risk, high-reward opportunities.",
            "Systematically de-risk every aspect of the business before scaling.",
        ),
        "Risk Tolerance",
    ),
    AssessmentQuestion(
        "Your company is running low on cash. You:",
        (
            "Immediately start an aggressive fundraising process.",
            "Cut costs drastically to extend the runway, even if it slows growth.",
            "Focus all efforts on generating short-term revenue.",
            "Transparently communicate the situation to the team to brainstorm solutions.",
        ),
        "Financial Management & Transparency",
    ),
    AssessmentQuestion(
        "A key employee wants to leave for a competitor. You:",
        (
            "Wish them well and immediately start a search for their replacement.",
            "Make a competitive counter-offer to convince them to stay.",
            "Conduct an exit interview to understand their reasons for leaving.",
            "Assess the impact on the team and communicate a plan to mitigate it.",
        ),
        "Leadership & Retention",
    ),
    AssessmentQuestion(
        "You receive harsh, negative feedback from an early customer. You:",
        (
            "Question the validity of the feedback.",
            "Thank them and ask detailed follow-up questions to understand the root cause.",
            "Apologize and offer a discount or refund.",
            "Compare their feedback with other users' experiences before acting.",
        ),
        "Customer Focus & Humility",
    ),
    AssessmentQuestion(
        "A new technology emerges that could disrupt your entire industry. You:",
        (
            "Wait to see how it develops and how competitors react.",
            "Assign a small team to research and experiment with the new technology.",
            "Double down on your current technology to build a stronger moat.",
            "Begin exploring ways to integrate the new technology into your product.",
        ),
        "Strategic Foresight",
    ),
    AssessmentQuestion(
        "You have two equally promising strategic paths, but only resources for one. How do you decide?",
        (
            "Choose the path that aligns best with the original company vision.",
            "Build a financial model to compare the potential ROI of each path.",
            "Consult with your team and advisors to get their perspectives.",
            "Run small, cheap experiments for both paths to see which gets more traction.",
        ),
        "Decision Making",
    ),
    AssessmentQuestion(
        "How do you prefer to celebrate team wins?",
        (
            "With public recognition in a company-wide meeting.",
            "With financial bonuses or stock options.",
            "With a team-building event or offsite.",
            "By immediately setting the next ambitious goal.",
        ),
        "Culture & Motivation",
    ),
    AssessmentQuestion(
        "A potential investor strongly disagrees with your core business model but is willing to invest if you change it. You:",
        (
            "Politely decline the investment to protect your vision.",
            "Consider the change if the investor has a strong track record in your industry.",
            "Ask for the data and reasoning behind their suggestion for further evaluation.",
            "Seek other investors who are aligned with your current model.",
        ),
        "Conviction & Coachability",
    ),
    AssessmentQuestion(
        "Which of these best describes your biggest personal weakness as a founder?",
        (
            "I can be too focused on product details and lose sight of the bigger picture.",
            "I sometimes struggle with delegating important tasks.",
            "I can be overly optimistic in financial and timeline projections.",
            "I find it difficult to deliver critical feedback to my team.",
        ),
        "Self-Awareness",
    ),
    AssessmentQuestion(
        "How do you personally stay updated with market trends?",
        (
            "Reading industry news, blogs, and reports daily.",
            "Networking with other founders, investors, and experts.",
            "Attending conferences and industry events.",
            "Analyzing competitor products and strategies.",
        ),
        "Continuous Learning",
    ),
    AssessmentQuestion(
        "When pitching your company, the most important thing to convey is:",
        (
            "The massive size of the market opportunity.",
            "The unique, defensible technology you've built.",
            "The incredible team you've assembled.",
            "The compelling story of why your company must exist.",
        ),
        "Sales & Communication",
    ),
    AssessmentQuestion(
        "You realize a core feature you spent months building isn't being used by customers. You:",
        (
            "Launch a marketing campaign to educate users on the feature's benefits.",
            "Interview users to understand why they aren't using it.",
            "Remove the feature to reduce product complexity.",
            "Deprioritize the feature but leave it in, in case it becomes useful later.",
        ),
        "Product Sense",
    ),
    AssessmentQuestion(
        "How do you handle disagreements with your co-founder(s)?",
        (
            "We debate until we reach a consensus, no matter how long it takes.",
            "We rely on data and experiments to prove which approach is better.",
            "We defer to the person with the most expertise in that specific area.",
            "If we're at a stalemate, one person has the final say (CEO or designated tie-breaker).",
        ),
        "Conflict Resolution",
    ),
    AssessmentQuestion(
        "The best way to motivate your team during a tough period is:",
        (
            "By showing unwavering optimism and confidence in the future.",
            "By being transparent about the challenges and showing a clear plan forward.",
            "By offering incentives for hitting short-term recovery goals.",
            "By reminding them of the company's mission and long-term vision.",
        ),
        "Leadership in Crisis",
    ),
    AssessmentQuestion(
        "You are presented with an early, but modest, acquisition offer. You:",
        (
            "Reject it immediately as it undervalues your long-term potential.",
            "Seriously consider it as a way to de-risk the outcome for the team and early investors.",
            "Use the offer as leverage in your current fundraising round.",
            "Evaluate it against a clear set of criteria for what a 'good' exit looks like for you.",
        ),
        "Strategic Thinking",
    ),
    AssessmentQuestion(
        "Describe your ideal relationship with your investors.",
        (
            "They provide capital and stay out of the day-to-day operations.",
            "They act as a formal board member for governance and accountability.",
            "They are active partners who I can call for advice and introductions.",
            "They are deeply embedded in our strategy and operations.",
        ),
        "Investor Relations",
    ),
    AssessmentQuestion(
        "When do you know it's the right time to stop pursuing an idea and move on?",
        (
            "When the team's morale is consistently low.",
            "When the data clearly shows a lack of product-market fit after multiple iterations.",
            "When the company is about to run out of money.",
            "When you personally lose passion for the problem you're solving.",
        ),
        "Grit vs. Stubbornness",
    ),
]


def validate_answers(answers: Dict[int, str]) -> Dict[str, str]:
    """Return field errors keyed by question index; empty when every answer is valid."""

    errors: Dict[str, str] = {}
    for index, question in enumerate(QUESTIONS):
        answer = answers.get(index)
        if answer is None:
            errors[str(index)] = "This question must be answered."
        elif answer not in question.options:
            errors[str(index)] = "Answer must be one of the listed options."
    for index in answers:
        if not 0 <= index < len(QUESTIONS):
            errors[str(index)] = "Unknown question."
    return errors


def summarize_answers(answers: Dict[int, str]) -> str:
    def picked(index: int, *option_indexes: int) -> bool:
        return answers[index] in {QUESTIONS[index].options[i] for i in option_indexes}

    resilience = "proactive and analytical" if picked(0, 0, 3) else "collaborative and solution-oriented"
    adaptability = (
        "strong commitment to their core vision while remaining open"
        if picked(1, 0, 3)
        else "data-driven and flexible approach"
    )
    team = (
        "cultural alignment and team cohesion"
        if "cultural fit" in answers[2].lower()
        else "talent and execution ability"
    )
    risk = "balanced and strategic" if "calculated" in answers[3].lower() else "cautious and methodical"
    finance = (
        "transparent and team-oriented"
        if "transparently" in answers[4].lower()
        else "pragmatic and decisive"
    )

    responses = "\n".join(
        f"- **{question.trait}:** {answers[index]}" for index, question in enumerate(QUESTIONS)
    )
    return f"""# Founder Behavioural Assessment Results

This report provides a qualitative analysis based on the founder's responses to a psychometric questionnaire.

## Key Traits Analysis:

- **Resilience & Problem-Solving:** The founder's response suggests a {resilience} approach to challenges. They appear capable of navigating setbacks effectively.

- **Adaptability & Vision:** The assessment indicates a {adaptability} to market feedback. This balance is crucial for product-market fit.

- **Team Building & Leadership:** The founder prioritizes {team}, suggesting a clear philosophy on building a high-performing team.

- **Risk Tolerance:** The founder demonstrates a {risk} approach to risk, which is vital for sustainable growth.

- **Financial Management & Transparency:** The response indicates a {finance} style in managing financial pressures.

## Responses by Trait:

{responses}

## Overall Summary:
The founder exhibits key psychological traits associated with successful entrepreneurs, including strong problem-solving skills, adaptability, and a clear leadership style. Further diligence is recommended, but this initial assessment is positive.
"""
