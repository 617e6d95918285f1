"""Built-in Flutter module catalog.

Each module is declared explicitly as a :class:`ModuleDescriptor`; there is no
runtime discovery.  Template trees live under
``modforge/scaffolder/templates/modules/<id>/``; modules without a directory
there are code-only and contribute dependencies but no files.
"""

from __future__ import annotations

from typing import Callable

from .models import (
    ModuleContributions,
    ModuleDescriptor,
    ModuleQuestion,
    ProviderContribution,
    QuestionOption,
    QuestionType,
    RouteContribution,
)
from .registry import ModuleRegistry


def _enabled(module_id: str) -> Callable[[object], bool]:
    """Predicate: the module is switched on in the project's configuration."""
    def predicate(context: object) -> bool:
        return context.is_module_enabled(module_id)  # type: ignore[attr-defined]
    return predicate


CORE = ModuleDescriptor(
    id="core",
    name="Core",
    description="Clean Architecture skeleton with Riverpod state management and go_router",
    always_included=True,
    phase=1,
    contributions=ModuleContributions(
        dependencies={
            "flutter_riverpod": "^2.6.1",
            "riverpod_annotation": "^2.6.1",
            "go_router": "^14.6.2",
            "freezed_annotation": "^2.4.4",
            "json_annotation": "^4.9.0",
        },
        dev_dependencies={
            "build_runner": "^2.4.13",
            "riverpod_generator": "^2.6.3",
            "go_router_builder": "^2.7.1",
            "freezed": "^2.5.7",
            "json_serializable": "^6.8.0",
            "flutter_lints": "^5.0.0",
        },
    ),
)

AUTH = ModuleDescriptor(
    id="auth",
    name="Authentication",
    description="User authentication with login, register, and session management",
    requires=("core",),
    phase=2,
    questions=[
        ModuleQuestion(
            id="provider",
            message="Which authentication provider do you want to use?",
            type=QuestionType.SELECT,
            options=[
                QuestionOption(value="firebase", label="Firebase Auth"),
                QuestionOption(value="supabase", label="Supabase Auth"),
                QuestionOption(value="custom", label="Custom backend"),
            ],
            default="firebase",
        ),
    ],
    contributions=ModuleContributions(
        dependencies={"firebase_core": "^3.8.0", "firebase_auth": "^5.3.4"},
        providers=[
            ProviderContribution(
                name="authRepositoryProvider",
                import_path="../../features/auth/presentation/providers/auth_provider.dart",
            ),
        ],
        routes=[
            RouteContribution(
                path="/login",
                name="login",
                import_path="../../features/auth/presentation/pages/login_page.dart",
            ),
            RouteContribution(
                path="/register",
                name="register",
                import_path="../../features/auth/presentation/pages/register_page.dart",
            ),
        ],
    ),
    is_enabled=_enabled("auth"),
)

API = ModuleDescriptor(
    id="api",
    name="API Client",
    description="HTTP client built on Dio and Retrofit",
    requires=("core",),
    phase=2,
    questions=[
        ModuleQuestion(id="baseUrl", message="What is the API base URL?", default="https://api.example.com"),
    ],
    contributions=ModuleContributions(
        dependencies={"dio": "^5.7.0", "retrofit": "^4.4.1", "json_annotation": "^4.9.0"},
        dev_dependencies={"retrofit_generator": "^9.1.5", "json_serializable": "^6.9.0"},
        providers=[
            ProviderContribution(
                name="dioClientProvider",
                import_path="../../core/network/dio_client.dart",
            ),
        ],
        env_vars=["API_BASE_URL"],
    ),
    is_enabled=_enabled("api"),
)

DATABASE = ModuleDescriptor(
    id="database",
    name="Database",
    description="Local persistence with Drift",
    requires=("core",),
    phase=2,
    questions=[
        ModuleQuestion(
            id="engine",
            message="Which local database engine?",
            type=QuestionType.SELECT,
            options=[
                QuestionOption(value="drift", label="Drift (SQLite)"),
                QuestionOption(value="hive", label="Hive"),
                QuestionOption(value="isar", label="Isar"),
            ],
            default="drift",
        ),
    ],
    contributions=ModuleContributions(
        dependencies={
            "drift": "^2.22.1",
            "sqlite3_flutter_libs": "^0.5.28",
            "path_provider": "^2.1.5",
            "path": "^1.9.0",
        },
        dev_dependencies={"drift_dev": "^2.22.1"},
        providers=[
            ProviderContribution(
                name="databaseProvider",
                import_path="../../core/database/app_database.dart",
            ),
        ],
    ),
    is_enabled=_enabled("database"),
)

I18N = ModuleDescriptor(
    id="i18n",
    name="Internationalization",
    description="ARB-based localization with flutter_localizations",
    requires=("core",),
    phase=3,
    questions=[
        ModuleQuestion(id="defaultLocale", message="Default locale?", default="en"),
    ],
    contributions=ModuleContributions(
        dependencies={"flutter_localizations": {"sdk": "flutter"}, "intl": "^0.19.0"},
        framework={"generate": True},
        providers=[
            ProviderContribution(
                name="localeProvider",
                import_path="../../core/l10n/locale_provider.dart",
            ),
        ],
    ),
    is_enabled=_enabled("i18n"),
)

THEME = ModuleDescriptor(
    id="theme",
    name="Theme",
    description="Material 3 theming with light/dark mode",
    requires=("core",),
    phase=3,
    questions=[
        ModuleQuestion(id="seedColor", message="Seed color (hex)?", default="#6750A4"),
        ModuleQuestion(id="darkMode", message="Support dark mode?", type=QuestionType.CONFIRM, default=True),
    ],
    contributions=ModuleContributions(
        dependencies={"google_fonts": "^6.2.1"},
        providers=[
            ProviderContribution(
                name="appThemeModeProvider",
                import_path="../../core/theme/theme_provider.dart",
            ),
        ],
    ),
    is_enabled=_enabled("theme"),
)

PUSH = ModuleDescriptor(
    id="push",
    name="Push Notifications",
    description="Push notifications via Firebase Cloud Messaging",
    requires=("core",),
    phase=4,
    contributions=ModuleContributions(
        dependencies={"firebase_core": "^3.8.0", "firebase_messaging": "^15.1.6"},
        providers=[
            ProviderContribution(
                name="pushNotificationProvider",
                import_path="../../core/push/push_provider.dart",
            ),
        ],
    ),
    is_enabled=_enabled("push"),
)

ANALYTICS = ModuleDescriptor(
    id="analytics",
    name="Analytics",
    description="Event tracking with Firebase Analytics",
    requires=("core",),
    phase=4,
    contributions=ModuleContributions(
        dependencies={"firebase_core": "^3.8.0", "firebase_analytics": "^11.3.6"},
        providers=[
            ProviderContribution(
                name="analyticsProvider",
                import_path="../../core/analytics/analytics_provider.dart",
            ),
        ],
    ),
    is_enabled=_enabled("analytics"),
)

CICD = ModuleDescriptor(
    id="cicd",
    name="CI/CD",
    description="Continuous integration workflow",
    requires=("core",),
    phase=4,
    questions=[
        ModuleQuestion(
            id="provider",
            message="Which CI provider?",
            type=QuestionType.SELECT,
            options=[
                QuestionOption(value="github", label="GitHub Actions"),
                QuestionOption(value="gitlab", label="GitLab CI"),
                QuestionOption(value="bitbucket", label="Bitbucket Pipelines"),
            ],
            default="github",
        ),
    ],
    is_enabled=_enabled("cicd"),
)

DEEP_LINKING = ModuleDescriptor(
    id="deep-linking",
    name="Deep Linking",
    description="App links and custom URL schemes",
    requires=("core",),
    phase=4,
    questions=[
        ModuleQuestion(id="scheme", message="Custom URL scheme?"),
        ModuleQuestion(id="host", message="App link host?"),
    ],
    contributions=ModuleContributions(
        dependencies={"app_links": "^6.3.3"},
        providers=[
            ProviderContribution(
                name="deepLinkProvider",
                import_path="../../core/deep_link/deep_link_provider.dart",
            ),
        ],
        routes=[
            RouteContribution(
                path="/link",
                name="deepLink",
                import_path="../../core/deep_link/deep_link_page.dart",
            ),
        ],
    ),
    is_enabled=_enabled("deep-linking"),
)

BUILTIN_MODULES: tuple[ModuleDescriptor, ...] = (
    CORE,
    AUTH,
    API,
    DATABASE,
    I18N,
    THEME,
    PUSH,
    ANALYTICS,
    CICD,
    DEEP_LINKING,
)


def build_default_registry() -> ModuleRegistry:
    """Return a registry pre-loaded with every built-in module."""
    return ModuleRegistry(BUILTIN_MODULES)
