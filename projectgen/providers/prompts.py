"""Prompt text sent to generation providers."""
from projectgen.providers.base import AnalysisResult

ANALYSIS_SYSTEM = (
    "You are an expert project analyzer. Always respond with valid JSON only. "
    "Do not use markdown formatting or code blocks. Return raw JSON."
)

FILES_SYSTEM = (
    "You are an expert Next.js developer. Generate complete, production-ready code files. "
    "Return ONLY a valid JSON array with no markdown formatting or explanations. "
    "Each object should have: path, content, type, language fields."
)

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "projectName": {"type": "string"},
        "projectType": {"type": "string"},
        "features": {"type": "array", "items": {"type": "string"}},
        "uiRequirements": {"type": "string"},
        "techStack": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["projectName", "projectType", "features"],
}


def build_analysis_prompt(description: str) -> str:
    return f"""
Analyze this project description and extract:
1. Project type and main purpose
2. Key features and functionality
3. UI/UX requirements
4. Technology stack preferences
5. Suggested project name

Project description: {description}

Respond with JSON in this format:
{{
  "projectName": "suggested-project-name",
  "projectType": "type of application",
  "features": ["feature1", "feature2"],
  "uiRequirements": "description of UI needs",
  "techStack": ["technology1", "technology2"]
}}"""


def build_files_prompt(analysis: AnalysisResult) -> str:
    return f"""
Based on this analysis: {analysis.to_prompt_json()}

Generate a complete Next.js project structure with TypeScript and Tailwind CSS.
Include all necessary files for a production-ready application.

Respond with JSON array of files:
[
  {{
    "path": "package.json",
    "content": "file content here",
    "type": "file",
    "language": "json"
  }}
]

Requirements:
- Use Next.js 14+ with App Router
- TypeScript configuration
- Tailwind CSS setup
- Modern React patterns with hooks
- Responsive design
- Include README.md with setup instructions
- Add appropriate dependencies in package.json
- Include example pages and components based on the features
"""
