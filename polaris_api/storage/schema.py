"""PostgreSQL schema definitions for Polaris API."""

# Helper function for auto-updating timestamps
CREATE_UPDATED_AT_TRIGGER = """
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""

# Users table - one row per WeChat openid, timestamps in epoch milliseconds
CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id BIGSERIAL PRIMARY KEY,
    openid VARCHAR(64) NOT NULL,
    nick_name VARCHAR(64) NOT NULL DEFAULT '',
    avatar_url VARCHAR(512) NOT NULL DEFAULT '',
    last_login_time BIGINT NOT NULL DEFAULT 0,
    created_at BIGINT NOT NULL DEFAULT 0,
    updated_at BIGINT NOT NULL DEFAULT 0
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_users_openid ON users(openid);
"""

# App versions table - at most one row may be active
CREATE_APP_VERSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS app_versions (
    id BIGSERIAL PRIMARY KEY,
    version VARCHAR(20) NOT NULL,
    name VARCHAR(100) NOT NULL DEFAULT '宝宝喂养时刻',
    description TEXT NOT NULL DEFAULT '',
    min_version VARCHAR(20) NOT NULL DEFAULT '',
    is_active BOOLEAN NOT NULL DEFAULT false,
    force_update BOOLEAN NOT NULL DEFAULT false,
    release_notes TEXT NOT NULL DEFAULT '',
    build_time TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_app_versions_version ON app_versions(version);
CREATE UNIQUE INDEX IF NOT EXISTS idx_app_versions_single_active
    ON app_versions(is_active) WHERE is_active;
CREATE INDEX IF NOT EXISTS idx_app_versions_created_at ON app_versions(created_at);

DROP TRIGGER IF EXISTS update_app_versions_updated_at ON app_versions;
CREATE TRIGGER update_app_versions_updated_at
    BEFORE UPDATE ON app_versions
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""

# Complete schema initialization - executes in order
INIT_SCHEMA = f"""
-- Create helper functions
{CREATE_UPDATED_AT_TRIGGER}

-- Create tables
{CREATE_USERS_TABLE}
{CREATE_APP_VERSIONS_TABLE}
"""
