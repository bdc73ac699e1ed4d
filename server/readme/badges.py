"""
Technology badges for the Tech Stack section.

Badges are collected from user emphasis, repository languages, dependency
names and LLM-extracted skills, in that priority. Output order is insertion
order, so the same inputs always yield the same badge list.
"""

from schemas import Badge, RepositoryAnalysis


# (name, hex color), grouped the way they are displayed
LANGUAGES = [
    ("Go", "00ADD8"), ("Python", "3776AB"), ("JavaScript", "F7DF1E"),
    ("TypeScript", "3178C6"), ("Rust", "000000"), ("Java", "ED8B00"),
    ("Kotlin", "7F52FF"), ("Swift", "FA7343"), ("C++", "00599C"),
    ("C", "A8B9CC"), ("C#", "239120"), ("PHP", "777BB4"), ("Ruby", "CC342D"),
    ("Dart", "0175C2"), ("Scala", "DC322F"), ("Elixir", "4B275F"),
    ("Haskell", "5D4F85"), ("Lua", "2C2D72"), ("Shell", "4EAA25"),
    ("HTML5", "E34F26"), ("CSS3", "1572B6"),
]

FRAMEWORKS = [
    # Frontend
    ("React", "61DAFB"), ("Vue.js", "4FC08D"), ("Angular", "DD0031"),
    ("Svelte", "FF3E00"), ("Next.js", "000000"), ("Nuxt.js", "00DC82"),
    ("Gatsby", "663399"), ("Remix", "000000"), ("Astro", "FF5D01"),
    ("TailwindCSS", "06B6D4"), ("Vite", "646CFF"),
    # Backend
    ("Node.js", "339933"), ("Express.js", "000000"), ("Fastify", "000000"),
    ("NestJS", "E0234E"), ("Django", "092E20"), ("Flask", "000000"),
    ("FastAPI", "009688"), ("Spring Boot", "6DB33F"), ("Laravel", "FF2D20"),
    ("Ruby on Rails", "CC0000"), ("Fiber", "00ADD8"), ("Gin", "00ADD8"),
    ("Echo", "00ADD8"),
    # Mobile
    ("Flutter", "02569B"), ("React Native", "61DAFB"),
]

DATABASES = [
    ("PostgreSQL", "316192"), ("MySQL", "00000F"), ("MongoDB", "47A248"),
    ("Redis", "DC382D"), ("SQLite", "07405E"), ("Cassandra", "1287B1"),
    ("Elasticsearch", "005571"), ("Supabase", "3ECF8E"), ("Firebase", "FFCA28"),
    ("Neon", "00E699"), ("Prisma", "2D3748"), ("Drizzle", "C5F74F"),
]

TOOLS = [
    # DevOps & cloud
    ("Docker", "2496ED"), ("Kubernetes", "326CE5"), ("Terraform", "7B42BC"),
    ("Ansible", "EE0000"), ("AWS", "FF9900"), ("GCP", "4285F4"),
    ("Azure", "0078D4"), ("Vercel", "000000"), ("Netlify", "00C7B7"),
    ("Heroku", "430098"), ("Nginx", "009639"),
    # Tooling
    ("Git", "F05032"), ("GraphQL", "E10098"), ("gRPC", "244C5A"),
    ("Apache Kafka", "231F20"), ("RabbitMQ", "FF6600"), ("Prometheus", "E6522C"),
    ("Grafana", "F46800"), ("Linux", "FCC624"), ("OpenAI", "412991"),
]

ALIASES = {
    "golang": "Go",
    "js": "JavaScript",
    "ts": "TypeScript",
    "cpp": "C++",
    "csharp": "C#",
    "html": "HTML5",
    "css": "CSS3",
    "vue": "Vue.js",
    "next": "Next.js",
    "nextjs": "Next.js",
    "nuxt": "Nuxt.js",
    "express": "Express.js",
    "nestjs": "NestJS",
    "@nestjs/core": "NestJS",
    "spring": "Spring Boot",
    "spring-boot": "Spring Boot",
    "rails": "Ruby on Rails",
    "k8s": "Kubernetes",
    "postgres": "PostgreSQL",
    "node": "Node.js",
    "tailwind": "TailwindCSS",
    "react-native": "React Native",
    "kafka": "Apache Kafka",
    "grpc": "gRPC",
    "bash": "Shell",
}

LOGO_SLUGS = {
    "C++": "cplusplus",
    "C#": "csharp",
    "Vue.js": "vuedotjs",
    "Next.js": "nextdotjs",
    "Nuxt.js": "nuxtdotjs",
    "Express.js": "express",
    "Node.js": "nodedotjs",
    "Ruby on Rails": "rubyonrails",
    "React Native": "react",
    "Spring Boot": "springboot",
    "Apache Kafka": "apachekafka",
    "GCP": "googlecloud",
    "AWS": "amazonaws",
}

CATEGORY_ORDER = ["Languages", "Frameworks & Libraries", "Databases", "Tools & Platforms"]

_CATEGORY_OF = {
    **{name: "Languages" for name, _ in LANGUAGES},
    **{name: "Frameworks & Libraries" for name, _ in FRAMEWORKS},
    **{name: "Databases" for name, _ in DATABASES},
}


def build_catalog() -> dict[str, Badge]:
    """Lowercase lookup key -> canonical Badge, aliases included."""
    catalog = {}
    for name, color in LANGUAGES + FRAMEWORKS + DATABASES + TOOLS:
        catalog[name.lower()] = Badge(name=name, color=color)
    for alias, canonical in ALIASES.items():
        catalog[alias.lower()] = catalog[canonical.lower()]
    return catalog


CATALOG = build_catalog()


def lookup(name: str) -> Badge | None:
    return CATALOG.get(name.strip().lower())


def normalize_dependency(name: str) -> str:
    """Scoped npm packages count as their scope: @angular/core -> angular."""
    key = name.lower()
    if key.startswith("@"):
        key = key[1:].split("/", 1)[0]
    return key


def build_badges(
    projects: list[RepositoryAnalysis],
    llm_skills: list[str],
    emphasized_skills: list[str],
) -> list[Badge]:
    badges: dict[str, Badge] = {}

    def add(key: str) -> None:
        badge = lookup(key)
        if badge is not None and badge.name not in badges:
            badges[badge.name] = badge.model_copy(update={"url": badge_image_url(badge)})

    for skill in emphasized_skills:
        add(skill)

    for project in projects:
        for language in project.languages:
            add(language)

    for project in projects:
        for deps in project.dependencies.values():
            for dep in deps:
                add(normalize_dependency(dep))

    for skill in llm_skills:
        add(skill)

    return list(badges.values())


def to_logo_slug(name: str) -> str:
    """shields.io simple-icons slug for a badge name."""
    if name in LOGO_SLUGS:
        return LOGO_SLUGS[name]
    return (
        name.lower()
        .replace(" ", "")
        .replace(".", "")
        .replace("+", "plus")
        .replace("#", "sharp")
    )


def badge_image_url(badge: Badge) -> str:
    return (
        f"https://img.shields.io/badge/{badge.name.replace(' ', '%20')}-{badge.color}"
        f"?style=flat-square&logo={to_logo_slug(badge.name)}&logoColor=white"
    )


def organize_badges_by_category(badges: list[Badge]) -> dict[str, list[Badge]]:
    """Group badges for display. Unknown names go to Tools & Platforms; empty groups are dropped."""
    groups = {category: [] for category in CATEGORY_ORDER}
    for badge in badges:
        groups[_CATEGORY_OF.get(badge.name, "Tools & Platforms")].append(badge)
    return {category: items for category, items in groups.items() if items}
