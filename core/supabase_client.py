# core/supabase_client.py

from typing import Optional
from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger


# ============================================================
# Supabase Client Factory (ANON key, client side)
# ============================================================

def get_supabase_client() -> Optional[Client]:
    """
    Creates a Supabase client using the public ANON KEY.
    The shell acts for a single signed-in user, so it never
    holds the service-role key. Used for:
        - auth.sign_in_with_password / sign_up / sign_out
        - auth.on_auth_state_change
        - auth.get_session (token refresh)
    """
    try:
        supabase_url = settings.SUPABASE_URL
        supabase_key = settings.SUPABASE_ANON_KEY

        if not supabase_url or not supabase_key:
            logger.error("Missing Supabase credentials")
            logger.error(f"   URL: {supabase_url}")
            logger.error(f"   ANON KEY: {'SET' if supabase_key else 'MISSING'}")
            return None

        return create_client(supabase_url, supabase_key)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None
