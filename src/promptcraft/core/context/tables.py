"""Derivation tables for the context normalizer.

Every requirement and constraint the normalizer emits comes from one of these
tables. Keys are lower-case input values; unknown values contribute nothing
unless a default is named below.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Technical requirements
# ---------------------------------------------------------------------------

PLATFORM_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "web": (
        "Web application development",
        "Responsive design for desktop and mobile",
        "Modern web technologies (HTML5, CSS3, JavaScript)",
    ),
    "mobile": (
        "Mobile-responsive design",
        "Touch-friendly interfaces",
        "Mobile performance optimization",
    ),
}

COMPLEXITY_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "simple": (
        "Simple, clean code structure",
        "Basic functionality",
    ),
    "medium": (
        "Modular code structure",
        "Basic state management",
        "Error handling",
    ),
    "complex": (
        "Scalable architecture",
        "Performance optimization",
        "Advanced state management",
        "Error handling and logging",
    ),
}
DEFAULT_COMPLEXITY = "simple"

EXPERIENCE_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "beginner": (
        "Clear, well-commented code",
        "Step-by-step implementation guide",
        "Best practices documentation",
    ),
    "intermediate": (
        "Conventional project structure",
        "Reusable components",
        "Documented setup steps",
    ),
    "advanced": (
        "Advanced patterns and optimizations",
        "Performance considerations",
        "Scalability planning",
    ),
}

# ---------------------------------------------------------------------------
# UI requirements
# ---------------------------------------------------------------------------

DESIGN_STYLE_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "minimal": (
        "Clean, minimal design",
        "Plenty of whitespace",
        "Simple color palette",
        "Typography-focused layout",
    ),
    "playful": (
        "Vibrant colors and gradients",
        "Engaging animations and transitions",
        "Fun, interactive elements",
        "Creative layouts",
    ),
    "business": (
        "Professional appearance",
        "Corporate color scheme",
        "Formal typography",
        "Clean, structured layout",
    ),
}

STYLE_DESCRIPTION_FORMAT = "Style preference: {}"

MOBILE_UI_REQUIREMENTS: tuple[str, ...] = (
    "Mobile-first responsive design",
    "Touch-friendly button sizes (44px minimum)",
    "Swipe gestures and mobile interactions",
)

BASELINE_UI_REQUIREMENTS: tuple[str, ...] = (
    "Accessibility compliance (WCAG 2.1)",
    "Cross-browser compatibility",
    "Loading states and error handling",
    "Consistent design system",
)

# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

WEB_ONLY_CONSTRAINTS: tuple[str, ...] = (
    "Web-only implementation",
    "No native mobile app features",
)

EXPERIENCE_CONSTRAINTS: dict[str, tuple[str, ...]] = {
    "beginner": (
        "Avoid overly complex patterns",
        "Use well-documented libraries",
        "Prioritize readability over optimization",
    ),
    "intermediate": (
        "Prefer established libraries over custom infrastructure",
        "Keep modules small and single-purpose",
    ),
}

COMPLEXITY_CONSTRAINTS: dict[str, tuple[str, ...]] = {
    "simple": (
        "Keep architecture simple",
        "Minimize external dependencies",
        "Focus on core functionality",
    ),
}

BASELINE_CONSTRAINTS: tuple[str, ...] = (
    "Follow modern web standards",
    "Ensure security best practices",
    "Optimize for performance",
)

# ---------------------------------------------------------------------------
# Tech stack
# ---------------------------------------------------------------------------

TOOL_TECH_STACKS: dict[str, tuple[str, ...]] = {
    "lovable": ("React", "TypeScript", "Tailwind CSS", "Supabase", "shadcn/ui"),
    "v0": ("React", "TypeScript", "Tailwind CSS", "Next.js"),
    "bolt": ("React", "TypeScript", "Vite", "CSS Modules"),
    "cursor": ("TypeScript", "Node.js", "Modern JavaScript"),
}
DEFAULT_TECH_STACK: tuple[str, ...] = ("React", "TypeScript", "Modern CSS")
WEB_TECH_FALLBACKS: tuple[str, ...] = ("HTML5", "CSS3")

DEFAULT_TARGET_AUDIENCE = "General users"
