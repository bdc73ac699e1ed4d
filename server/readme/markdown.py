"""
Profile README assembly.

Everything here is a pure function of its inputs: the LLM only supplies the
pitch and per-project summaries, the rest comes from repository data.
"""

from models import User
from readme.badges import CATEGORY_ORDER, badge_image_url, organize_badges_by_category
from schemas import (
    Badge,
    ContentGenerationRequest,
    ProfileConfigData,
    ProjectSummary,
    RepositoryAnalysis,
)

SEPARATOR = " &nbsp;·&nbsp; "
MAX_TYPING_LINES = 5

TYPING_SVG = (
    "https://readme-typing-svg.demolab.com?font=Fira+Code&size=22&duration=3000&pause=1000"
    "&color=2E97F7&center=true&vCenter=true&width=650&height=80&lines={lines}"
)
WAVE_GIF = "https://raw.githubusercontent.com/MartinHeinz/MartinHeinz/master/wave.gif"


# =============================================================================
# DATA HELPERS
# =============================================================================

def collect_top_languages(projects: list[RepositoryAnalysis], n: int) -> list[str]:
    """Languages by total bytes across projects, largest first, ties by name."""
    totals: dict[str, int] = {}
    for project in projects:
        for language, size in project.languages.items():
            totals[language] = totals.get(language, 0) + size
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [name for name, _ in ranked[:n]]


def collect_topics(projects: list[RepositoryAnalysis]) -> list[str]:
    seen = set()
    topics = []
    for project in projects:
        if project.repository is None:
            continue
        for topic in project.repository.topics:
            if topic not in seen:
                seen.add(topic)
                topics.append(topic)
    return topics


def contact_email(config: ProfileConfigData, user: User) -> str:
    return config.contact_prefs.email or user.email or ""


def portfolio_url(config: ProfileConfigData, user: User) -> str:
    return config.contact_prefs.personal_website or user.blog or ""


def _plus(text: str) -> str:
    return text.strip().replace(" ", "+")


def build_typing_lines(config: ProfileConfigData, top_languages: list[str], topics: list[str]) -> list[str]:
    lines = []
    if config.target_role:
        lines.append(_plus(config.target_role))

    if len(top_languages) == 1:
        lines.append(f"{_plus(top_languages[0])}+Developer")
    elif len(top_languages) >= 2:
        lines.append(f"{_plus(top_languages[0])} & {_plus(top_languages[1])} Developer")

    if config.skills_emphasis:
        lines.append(f"Expert+in+{_plus(config.skills_emphasis[0])}")

    for topic in topics:
        if len(lines) >= MAX_TYPING_LINES:
            break
        lines.append(_plus(topic))

    if not lines:
        lines.append("Software+Developer")
    return lines[:MAX_TYPING_LINES]


# =============================================================================
# SECTIONS
# =============================================================================

def _hero(user: User, config: ProfileConfigData, top_languages: list[str], topics: list[str]) -> list[str]:
    username = user.username
    out = ['<div align="center">\n\n']

    if user.avatar_url:
        out.append(
            f'<img src="{user.avatar_url}" width="120" height="120" '
            f'style="border-radius:50%" alt="@{username}" />\n\n'
        )

    out.append(f'# Hi, I\'m @{username} <img src="{WAVE_GIF}" width="28px" />\n\n')

    if user.bio:
        out.append(f"**{user.bio}**\n\n")

    meta = []
    if user.location:
        meta.append(f"📍 {user.location}")
    if user.company:
        if user.company.startswith("@"):
            meta.append(f"🏢 [{user.company}](https://github.com/{user.company[1:]})")
        else:
            meta.append(f"🏢 {user.company}")
    if meta:
        out.append(SEPARATOR.join(meta) + "\n\n")

    lines = ";".join(build_typing_lines(config, top_languages, topics))
    out.append(f"[![Typing SVG]({TYPING_SVG.format(lines=lines)})](https://git.io/typing-svg)\n\n")

    out.append(
        f"![Profile Views](https://komarev.com/ghpvc/?username={username}"
        f"&label=Profile%20Views&color=0e75b6&style=flat)\n"
    )
    out.append(
        f"[![Followers](https://img.shields.io/github/followers/{username}?label=Followers&style=social)]"
        f"(https://github.com/{username}?tab=followers)\n"
    )
    out.append(
        f"[![Stars](https://img.shields.io/github/stars/{username}?label=Stars&style=social)]"
        f"(https://github.com/{username})\n\n"
    )
    out.append("</div>\n\n")
    return out


def _about(
    pitch: str,
    summaries: list[ProjectSummary],
    config: ProfileConfigData,
    top_languages: list[str],
    email: str,
) -> list[str]:
    out = ["## 👨‍💻 About Me\n\n", pitch, "\n\n"]

    if config.target_role:
        out.append(f"- 🎯 Growing as a **{config.target_role}**\n")

    current = [
        f"[{s.repository.name}]({s.repository.html_url})"
        for s in summaries[:2]
        if s.repository is not None
    ]
    if current:
        out.append(f"- 🔭 Currently building **{' & '.join(current)}**\n")

    if config.skills_emphasis:
        out.append(f"- 🌱 Deepening expertise in **{' & '.join(config.skills_emphasis[:2])}**\n")
    elif top_languages:
        out.append(f"- 🌱 Deepening expertise in **{top_languages[0]}**\n")

    if top_languages:
        out.append(f"- 💬 Ask me about **{', '.join(top_languages[:3])}**\n")
    if email:
        out.append(f"- 📫 Reach me at **{email}**\n")
    out.append("\n")
    return out


def _connect(user: User, config: ProfileConfigData, email: str, site: str) -> list[str]:
    prefs = config.contact_prefs
    out = ["## 🌐 Connect\n\n", '<div align="center">\n\n']
    if prefs.linkedin:
        out.append(
            "[![LinkedIn](https://img.shields.io/badge/LinkedIn-0077B5?style=for-the-badge"
            f"&logo=linkedin&logoColor=white)]({prefs.linkedin})\n"
        )
    if prefs.twitter:
        out.append(
            "[![Twitter/X](https://img.shields.io/badge/Twitter-000000?style=for-the-badge"
            f"&logo=x&logoColor=white)]({prefs.twitter})\n"
        )
    if email:
        out.append(
            "[![Email](https://img.shields.io/badge/Email-D14836?style=for-the-badge"
            f"&logo=gmail&logoColor=white)](mailto:{email})\n"
        )
    if site:
        out.append(
            "[![Website](https://img.shields.io/badge/Website-FF5722?style=for-the-badge"
            f"&logo=googlechrome&logoColor=white)]({site})\n"
        )
    out.append(
        "[![GitHub](https://img.shields.io/badge/GitHub-100000?style=for-the-badge"
        f"&logo=github&logoColor=white)](https://github.com/{user.username})\n\n"
    )
    out.append("</div>\n\n")
    return out


def _tech_stack(badges: list[Badge]) -> list[str]:
    if not badges:
        return []
    out = ["## 🛠️ Tech Stack\n\n", '<div align="center">\n\n']
    groups = organize_badges_by_category(badges)
    for category in CATEGORY_ORDER:
        if category not in groups:
            continue
        out.append(f"**{category}**\n\n")
        for badge in groups[category]:
            out.append(f"![{badge.name}]({badge_image_url(badge)}) ")
        out.append("\n\n")
    out.append("</div>\n\n")
    return out


def _stats(username: str) -> list[str]:
    return [
        "## 📊 GitHub Stats\n\n",
        '<div align="center">\n\n',
        f"![{username}'s stats](https://github-readme-stats.vercel.app/api?username={username}"
        "&show_icons=true&count_private=true&theme=tokyonight&hide_border=true)\n",
        f"![Top langs](https://github-readme-stats.vercel.app/api/top-langs/?username={username}"
        "&layout=compact&theme=tokyonight&hide_border=true)\n\n",
        f"![Streak](https://streak-stats.demolab.com?user={username}&theme=tokyonight&hide_border=true)\n\n",
        f"[![Trophies](https://github-profile-trophy.vercel.app/?username={username}"
        "&theme=tokyonight&no-frame=true&margin-w=4)](https://github.com/ryo-ma/github-profile-trophy)\n\n",
        "</div>\n\n",
    ]


def _project_stats(summary: ProjectSummary, analysis: RepositoryAnalysis | None) -> list[str]:
    repo = summary.repository
    stats = []
    if repo.stargazers_count > 0:
        stats.append(f"⭐ {repo.stargazers_count} stars")
    if repo.forks_count > 0:
        stats.append(f"🍴 {repo.forks_count} forks")
    if analysis is not None:
        if analysis.commit_count > 0:
            stats.append(f"📝 {analysis.commit_count} commits")
        if analysis.contributor_count > 0:
            stats.append(f"👥 {analysis.contributor_count} contributors")
        languages = collect_top_languages([analysis], 3)
        if languages:
            stats.append("🔤 " + " / ".join(languages))
    if repo.topics:
        stats.append("🏷️ " + ", ".join(repo.topics[:5]))
    return stats


def _featured_projects(
    username: str, summaries: list[ProjectSummary], projects: list[RepositoryAnalysis]
) -> list[str]:
    if not summaries:
        return []
    out = ["## 🚀 Featured Projects\n\n"]
    for i, summary in enumerate(summaries):
        repo = summary.repository
        if repo is None:
            continue
        owner = repo.full_name.split("/")[0] if "/" in repo.full_name else username

        out.append(f"### [{repo.name}]({repo.html_url})\n\n")
        if repo.description:
            out.append(f"> {repo.description}\n\n")
        out.append(
            f"[![Repo Card](https://github-readme-stats.vercel.app/api/pin/?username={owner}"
            f"&repo={repo.name}&theme=tokyonight&hide_border=true)]({repo.html_url})\n\n"
        )
        if summary.summary:
            out.append(summary.summary + "\n\n")
        if summary.tech_stack:
            out.append("**Tech:** " + "".join(f"`{tech}` " for tech in summary.tech_stack) + "\n\n")

        stats = _project_stats(summary, projects[i] if i < len(projects) else None)
        if stats:
            out.append(SEPARATOR.join(stats) + "\n\n")

        if i < len(summaries) - 1:
            out.append("---\n\n")
    return out


def _activity(username: str) -> list[str]:
    return [
        "## 📈 Contribution Activity\n\n",
        '<div align="center">\n\n',
        f"[![Activity Graph](https://github-readme-activity-graph.vercel.app/graph?username={username}"
        "&theme=tokyo-night&hide_border=true)](https://github.com/ashutosh00710/github-readme-activity-graph)\n\n",
        "</div>\n\n",
    ]


def _footer(username: str) -> list[str]:
    return [
        "---\n\n",
        '<div align="center">\n\n',
        f"*Generated with [GitRight](https://github.com/{username}) · "
        f"![](https://komarev.com/ghpvc/?username={username}&style=flat-square)*\n\n",
        "</div>\n",
    ]


def build_markdown(
    user: User,
    request: ContentGenerationRequest,
    pitch: str,
    summaries: list[ProjectSummary],
    badges: list[Badge],
    config: ProfileConfigData,
) -> str:
    top_languages = collect_top_languages(request.projects, 5)
    topics = collect_topics(request.projects)
    email = contact_email(config, user)

    parts = []
    parts += _hero(user, config, top_languages, topics)
    parts += _about(pitch, summaries, config, top_languages, email)
    parts += _connect(user, config, email, portfolio_url(config, user))
    parts += _tech_stack(badges)
    parts += _stats(user.username)
    parts += _featured_projects(user.username, summaries, request.projects)
    parts += _activity(user.username)
    parts += _footer(user.username)
    return "".join(parts)
