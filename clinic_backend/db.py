# db.py
from __future__ import annotations
import os
from functools import lru_cache

import sqlalchemy as sa
from sqlalchemy import text


def database_url() -> str:
    return os.environ.get("DATABASE_URL", "")


@lru_cache()
def get_engine() -> sa.engine.Engine:
    return sa.create_engine(
        database_url(),
        pool_pre_ping=True,
        future=True,
    )


SCHEMA = """
CREATE TABLE IF NOT EXISTS public.user_roles (
  id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
  user_id     UUID NOT NULL UNIQUE REFERENCES auth.users(id) ON DELETE CASCADE,
  role        TEXT NOT NULL CHECK (role IN ('doctor', 'secretary')),
  created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS public.patients (
  id                       UUID PRIMARY KEY DEFAULT gen_random_uuid(),
  full_name                TEXT NOT NULL,
  phone                    TEXT NOT NULL,
  email                    TEXT,
  date_of_birth            DATE,
  gender                   TEXT CHECK (gender IN ('male', 'female')),
  address                  TEXT,
  blood_type               TEXT CHECK (blood_type IN ('A+','A-','B+','B-','AB+','AB-','O+','O-')),
  emergency_contact_name   TEXT,
  emergency_contact_phone  TEXT,
  notes                    TEXT,
  created_by               UUID REFERENCES auth.users(id),
  created_at               TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- phone uniqueness lives here; the client-side check is only a hint
CREATE UNIQUE INDEX IF NOT EXISTS uq_patients_phone ON public.patients (phone);
CREATE INDEX IF NOT EXISTS idx_patients_created ON public.patients (created_at);

CREATE TABLE IF NOT EXISTS public.visits (
  id               UUID PRIMARY KEY DEFAULT gen_random_uuid(),
  patient_id       UUID NOT NULL REFERENCES public.patients(id),
  visit_date       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
  chief_complaint  TEXT NOT NULL,
  diagnosis        TEXT
);

CREATE INDEX IF NOT EXISTS idx_visits_date ON public.visits (visit_date);

CREATE TABLE IF NOT EXISTS public.appointments (
  id                UUID PRIMARY KEY DEFAULT gen_random_uuid(),
  patient_id        UUID NOT NULL REFERENCES public.patients(id),
  appointment_date  TIMESTAMPTZ NOT NULL,
  purpose           TEXT NOT NULL,
  status            TEXT NOT NULL DEFAULT 'scheduled'
                    CHECK (status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no_show')),
  duration_minutes  INTEGER NOT NULL DEFAULT 30
);

CREATE INDEX IF NOT EXISTS idx_appts_date ON public.appointments (appointment_date);
"""


def init_db() -> None:
    with get_engine().begin() as conn:
        conn.execute(text(SCHEMA))


def insert_role(user_id: str, role: str) -> None:
    with get_engine().begin() as conn:
        conn.execute(
            text("INSERT INTO public.user_roles (user_id, role) VALUES (:user_id, :role)"),
            {"user_id": user_id, "role": role},
        )
