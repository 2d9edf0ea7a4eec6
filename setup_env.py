import os
import secrets

SECRET_KEYS = ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET", "PASSWORD_PEPPER")

def generate_secrets():
    print("Generating signing secrets...")
    return {key: secrets.token_urlsafe(48) for key in SECRET_KEYS}

def render_env(env_content: str, generated: dict) -> str:
    new_lines = []
    seen = set()
    for line in env_content.splitlines():
        key = line.split("=", 1)[0].strip()
        if key in generated:
            new_lines.append(f'{key}="{generated[key]}"')
            seen.add(key)
        else:
            new_lines.append(line)

    # Keys missing from the example are appended
    for key in SECRET_KEYS:
        if key not in seen:
            new_lines.append(f'{key}="{generated[key]}"')

    return "\n".join(new_lines) + "\n"

def setup_env():
    if os.path.exists(".env"):
        response = input("A .env file already exists. Overwrite it? (y/N): ")
        if response.lower() != 'y':
            print("Aborted.")
            return

    if not os.path.exists(".env.example"):
        print("Error: .env.example not found.")
        return

    print("Reading .env.example...")
    with open(".env.example", "r") as f:
        env_content = f.read()

    with open(".env", "w") as f:
        f.write(render_env(env_content, generate_secrets()))

    print("SUCCESS: .env file created with new signing secrets.")

if __name__ == "__main__":
    setup_env()
