# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Password, email OTP and SMS OTP sign-in
# - Password reset emails
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.sign_in_with_otp() / auth.verify_otp() - One-time code login by email or phone
- auth.reset_password_for_email() - Send a password reset link
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Username and phone given at registration are stored in user_metadata; a database
trigger (handle_new_user) copies them into the public.profiles row.
"""
