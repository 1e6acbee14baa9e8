#!/usr/bin/env python3
"""
Environment setup for the dayplan API.
Writes a .env file with the settings dayplan.config reads.
"""

import os


def ask(prompt: str, default: str) -> str:
    value = input(f"{prompt} [{default}]: ").strip()
    return value or default


def main():
    print("Setting up dayplan API...\n")

    if os.path.exists('.env'):
        print(".env file already exists. Do you want to overwrite it? (y/n): ", end="")
        response = input().lower().strip()
        if response != 'y':
            print("Setup cancelled.")
            return

    database_url = ask("Database URL", "sqlite:///./dayplan.db")
    openai_key = ask("OpenAI API key (empty for heuristic categorization)", "")
    broker_url = ask("Celery broker URL", "redis://localhost:6379/0")
    learning_async = ask("Apply feedback through the Celery worker? (1/0)", "0")
    timezone = ask("Default timezone", "UTC")

    env_content = f"""# dayplan API Environment Variables
DATABASE_URL={database_url}
OPENAI_API_KEY={openai_key}
OPENAI_MODEL=gpt-3.5-turbo-0125
AI_PROVIDER={"openai" if openai_key else "heuristic"}
CELERY_BROKER_URL={broker_url}
CELERY_RESULT_BACKEND={broker_url}
LEARNING_ASYNC={learning_async}
LEARNING_MASK_HARD_CONSTRAINTS=1
DEFAULT_TIMEZONE={timezone}
LOG_LEVEL=INFO
"""

    with open('.env', 'w') as f:
        f.write(env_content)

    print("Environment setup completed!")

    print("\nNext steps:")
    print("1. Install dependencies: pip install -e .[test]")
    print("2. Run the application: python run.py")
    print("3. Start the learning worker (optional): python start_learning_worker.py")
    print("4. Open http://localhost:8000/docs in your browser")

    print("\nAPI Endpoints:")
    print("   • Create profile: POST /users/")
    print("   • Tasks: /tasks/")
    print("   • Plan for a day: GET /schedule/?date=YYYY-MM-DD")
    print("   • Feedback: POST /schedule/feedback")
    print("   • Model weights: GET /model/")
    print("   • Health: GET /health")


if __name__ == "__main__":
    main()
