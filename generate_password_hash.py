#!/usr/bin/env python3
"""
Password Hash Generator
Generates a bcrypt hash of the gallery admin password.
Run this script to create the ADMIN_PASSWORD_HASH for your .env file.
"""
import getpass

from pfp_gallery.utils.auth import hash_password


def main():
    """Main function to generate password hash."""
    print("=" * 60)
    print("PFP Gallery Admin Password Hash Generator")
    print("=" * 60)
    print()
    print("Copy the output to your .env file as ADMIN_PASSWORD_HASH.")
    print("When set, it replaces ADMIN_PASSWORD for the x-admin-pass check.")
    print()

    # Get password securely (won't echo to screen)
    password = getpass.getpass("Enter admin password: ")

    if not password:
        print("\nError: Password cannot be empty")
        return

    password_confirm = getpass.getpass("Confirm password: ")

    if password != password_confirm:
        print("\nError: Passwords do not match")
        return

    print("\nGenerating hash (this may take a moment)...")

    hashed = hash_password(password)

    print("\nSuccess! Copy this line to your .env file:\n")
    print(f"ADMIN_PASSWORD_HASH={hashed}")
    print()
    print("Keep this hash secret and never commit it to version control!")
    print()


if __name__ == "__main__":
    main()
