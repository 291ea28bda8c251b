"""Deterministic minimal Next.js project used when provider output is unusable."""
from typing import List
from projectgen.schemas.projects import FileArtifact, FileKind
from projectgen.generators.project_gen.utils import to_package_name, to_json


def render_package_json(project_name: str) -> str:
    return to_json({
        "name": to_package_name(project_name),
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
        "dependencies": {
            "next": "14.0.0",
            "react": "^18.0.0",
            "react-dom": "^18.0.0",
        },
        "devDependencies": {
            "typescript": "^5.0.0",
            "@types/node": "^20.0.0",
            "@types/react": "^18.0.0",
            "@types/react-dom": "^18.0.0",
            "tailwindcss": "^3.3.0",
            "autoprefixer": "^10.4.16",
            "postcss": "^8.4.31",
        },
    })


def render_next_config() -> str:
    return """/** @type {import('next').NextConfig} */
const nextConfig = {}

module.exports = nextConfig
"""


def render_tailwind_config() -> str:
    return """/** @type {import('tailwindcss').Config} */
module.exports = {
  content: [
    './pages/**/*.{js,ts,jsx,tsx,mdx}',
    './components/**/*.{js,ts,jsx,tsx,mdx}',
    './app/**/*.{js,ts,jsx,tsx,mdx}',
  ],
  theme: {
    extend: {},
  },
  plugins: [],
}
"""


def render_postcss_config() -> str:
    return """module.exports = {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}
"""


def render_globals_css() -> str:
    return """@tailwind base;
@tailwind components;
@tailwind utilities;

:root {
  --foreground-rgb: 0, 0, 0;
  --background-rgb: 255, 255, 255;
}

@media (prefers-color-scheme: dark) {
  :root {
    --foreground-rgb: 255, 255, 255;
    --background-rgb: 0, 0, 0;
  }
}

body {
  color: rgb(var(--foreground-rgb));
  background: rgb(var(--background-rgb));
}
"""


def render_layout(project_name: str) -> str:
    title = to_json(project_name)
    return f"""import './globals.css'
import type {{ Metadata }} from 'next'

export const metadata: Metadata = {{
  title: {title},
  description: 'Generated by projectgen',
}}

export default function RootLayout({{
  children,
}}: {{
  children: React.ReactNode
}}) {{
  return (
    <html lang="en">
      <body>{{children}}</body>
    </html>
  )
}}
"""


def render_page(project_name: str) -> str:
    heading = to_json(f"Welcome to {project_name}")
    return f"""export default function Home() {{
  return (
    <main className="flex min-h-screen flex-col items-center justify-center p-24">
      <h1 className="text-4xl font-bold">{{{heading}}}</h1>
      <p className="mt-4 text-lg opacity-70">
        Get started by editing <code className="font-mono font-bold">app/page.tsx</code>
      </p>
    </main>
  )
}}
"""


def render_readme(project_name: str) -> str:
    return f"""# {project_name}

This project was generated by projectgen.

## Getting Started

Install the dependencies:

```bash
npm install
```

Run the development server:

```bash
npm run dev
```

Open [http://localhost:3000](http://localhost:3000) with your browser to see the result.

## Features

- Next.js 14 with App Router
- TypeScript support
- Tailwind CSS for styling
"""


def render_tsconfig() -> str:
    return to_json({
        "compilerOptions": {
            "target": "es5",
            "lib": ["dom", "dom.iterable", "esnext"],
            "allowJs": True,
            "skipLibCheck": True,
            "strict": True,
            "noEmit": True,
            "esModuleInterop": True,
            "module": "esnext",
            "moduleResolution": "bundler",
            "resolveJsonModule": True,
            "isolatedModules": True,
            "jsx": "preserve",
            "incremental": True,
            "plugins": [{"name": "next"}],
            "paths": {"@/*": ["./*"]},
        },
        "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
        "exclude": ["node_modules"],
    })


def generate_fallback_project(project_name: str) -> List[FileArtifact]:
    """
    Build the canonical minimal project for ``project_name``.

    Pure and network-free: the same name always yields the same files,
    in this order: manifest, Next.js, Tailwind and PostCSS configs,
    stylesheet, root layout, home page, README, TypeScript config.
    """
    project_name = project_name.strip() or "my-app"
    return [
        FileArtifact(path="package.json", content=render_package_json(project_name),
                     kind=FileKind.FILE, language="json"),
        FileArtifact(path="next.config.js", content=render_next_config(),
                     kind=FileKind.FILE, language="javascript"),
        FileArtifact(path="tailwind.config.js", content=render_tailwind_config(),
                     kind=FileKind.FILE, language="javascript"),
        FileArtifact(path="postcss.config.js", content=render_postcss_config(),
                     kind=FileKind.FILE, language="javascript"),
        FileArtifact(path="app/globals.css", content=render_globals_css(),
                     kind=FileKind.FILE, language="css"),
        FileArtifact(path="app/layout.tsx", content=render_layout(project_name),
                     kind=FileKind.FILE, language="typescript"),
        FileArtifact(path="app/page.tsx", content=render_page(project_name),
                     kind=FileKind.FILE, language="typescript"),
        FileArtifact(path="README.md", content=render_readme(project_name),
                     kind=FileKind.FILE, language="markdown"),
        FileArtifact(path="tsconfig.json", content=render_tsconfig(),
                     kind=FileKind.FILE, language="json"),
    ]
