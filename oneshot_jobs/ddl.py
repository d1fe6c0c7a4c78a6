"""Database objects for one-shot jobs on pg_cron."""

NAME_SEQUENCE = "oneshot_job_name_seq"

NAME_SEQUENCE_DDL = f"""
CREATE SEQUENCE IF NOT EXISTS {NAME_SEQUENCE} AS BIGINT START WITH 1;
"""

# Called as the last statement of every one-shot command. Failures are
# reported as warnings so the command's own work still commits.
DISABLE_FUNCTION_DDL = """
CREATE OR REPLACE FUNCTION oneshot_disable(job_name TEXT)
RETURNS BIGINT
LANGUAGE plpgsql
AS $fn$
DECLARE
  last_command TEXT;
  past_at      TIMESTAMP;
  job_handle   BIGINT;
BEGIN
  SELECT d.command INTO last_command
  FROM cron.job_run_details d
  JOIN cron.job j ON j.jobid = d.jobid
  WHERE j.jobname = job_name
  ORDER BY d.runid DESC
  LIMIT 1;

  IF last_command IS NULL THEN
    SELECT j.command INTO last_command FROM cron.job j WHERE j.jobname = job_name;
  END IF;

  IF last_command IS NULL THEN
    RAISE WARNING 'oneshot_disable: job % not found', job_name;
    RETURN NULL;
  END IF;

  past_at := (now() AT TIME ZONE COALESCE(current_setting('cron.timezone', true), 'GMT'))
             - INTERVAL '1 minute';

  job_handle := cron.schedule(
    job_name,
    format(
      '%s %s %s %s *',
      extract(minute FROM past_at)::INT,
      extract(hour FROM past_at)::INT,
      extract(day FROM past_at)::INT,
      extract(month FROM past_at)::INT
    ),
    last_command
  );
  RETURN job_handle;
EXCEPTION WHEN others THEN
  RAISE WARNING 'oneshot_disable(%) failed: %', job_name, SQLERRM;
  RETURN NULL;
END;
$fn$;
"""

ONESHOT_DDL = NAME_SEQUENCE_DDL + DISABLE_FUNCTION_DDL
