"""
Synthetic report data.

Two generators live here, neither of them domain logic:

- generate_placeholder_reports: random but plausible reports that keep the
  live dashboard from rendering an empty state before real data exists.
- generate_mock_reports / MOCK_PROFILES: a fixed data set written to the
  remote store on demand (POST /api/seed).
"""

import random
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from mapper import format_date, format_time, generate_report_id, now_local
from schemas import Report, ReportUpdate, UserProfile

PLACEHOLDER_COUNT = 15
PLACEHOLDER_WINDOW_DAYS = 90

DEFAULT_RESIDENT_REPORTER_ID = '00000000-0000-0000-0000-000000000001'

PLACEHOLDER_LOCATIONS = [
    'Brgy. Banicain, Olongapo City, Zambales',
    'Downtown District, Olongapo City',
    'Residential Area, Brgy. Banicain',
    'Industrial Zone, Olongapo City',
    'Barangay Hall, Brgy. Banicain',
]

PLACEHOLDER_TYPES = [
    'Theft', 'Assault', 'Fraud', 'Vandalism', 'Burglary',
    'Traffic Incident', 'Noise Complaint', 'Suspicious Activity',
]

PLACEHOLDER_OFFICERS = ['Officer Smith', 'Officer Johnson', 'Officer Brown', 'Officer Davis', 'Officer Wilson']

_STATUSES = ['Open', 'Under Investigation', 'Solved']
_PRIORITIES = ['Low', 'Medium', 'High', 'Critical']

_DAMAGE_BY_PRIORITY = {
    'Critical': 'Significant damage reported',
    'High': 'Moderate damage',
}

_NOTES_BY_STATUS = {
    'Solved': 'Case successfully resolved',
    'Under Investigation': 'Active investigation in progress',
    'Open': 'Awaiting assignment',
}


# ---------- Placeholder data ----------

def _random_clock(rng: random.Random) -> str:
    return f"{rng.randrange(24):02d}:{rng.randrange(60):02d}"


def generate_placeholder_reports(
    count: int = PLACEHOLDER_COUNT,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[Report]:
    rng = rng or random.Random()
    now = now or now_local()
    reports = []

    for i in range(count):
        reported = now - timedelta(days=rng.randrange(PLACEHOLDER_WINDOW_DAYS))
        type_ = rng.choice(PLACEHOLDER_TYPES)
        status = rng.choice(_STATUSES)
        priority = rng.choice(_PRIORITIES)
        location = rng.choice(PLACEHOLDER_LOCATIONS)
        officer = 'Unassigned' if status == 'Open' else rng.choice(PLACEHOLDER_OFFICERS)
        clock = _random_clock(rng)

        updates = [ReportUpdate(date=format_date(reported), time=clock, note='Report submitted')]
        if status == 'Solved':
            solved = reported + timedelta(days=rng.randint(1, 7))
            updates.append(ReportUpdate(date=format_date(solved), time=_random_clock(rng), note='Case resolved and closed'))
        elif status == 'Under Investigation':
            started = reported + timedelta(days=1)
            updates.append(ReportUpdate(date=format_date(started), time=_random_clock(rng), note='Investigation started'))

        reports.append(Report(
            id=f"CR-{reported.year}-{reported.month:02d}-{i + 1:04d}",
            title=f"{type_} Incident - Report #{i + 1}",
            type=type_,
            status=status,
            priority=priority,
            location=location,
            date=format_date(reported),
            time=clock,
            officer=officer,
            description=f"Reported {type_.lower()} incident in {location}. Details are being investigated.",
            evidence=['Witness statements', 'CCTV footage'] if rng.random() > 0.5 else ['Initial report'],
            suspects=['Suspect identified'] if status == 'Solved' and rng.random() > 0.6 else [],
            victims=['Affected party'] if rng.random() > 0.7 else [],
            damage=_DAMAGE_BY_PRIORITY.get(priority, 'Minimal damage'),
            notes=_NOTES_BY_STATUS[status],
            updates=updates,
            reporterId=None,
        ))

    return reports


# ---------- Mock data set ----------

MOCK_RESIDENT = UserProfile(name='Mock Reporter', email='mock.reporter@test.com', role='Resident')

MOCK_STAFF = [
    UserProfile(name='Chief Maria Dela Cruz', email='chief@bsafe.gov.ph', role='Police Chief'),
    UserProfile(name='Analyst Jose Ramirez', email='analyst@bsafe.gov.ph', role='Crime Analyst'),
    UserProfile(name='Officer Lea Santiago', email='officer1@bsafe.gov.ph', role='Police Officer'),
    UserProfile(name='Administrator Carlo Reyes', email='admin@bsafe.gov.ph', role='Administrator'),
]

MOCK_PROFILES = [MOCK_RESIDENT] + MOCK_STAFF

# title, type, status, priority, location, date, time, officer, description, damage, notes
MOCK_REPORT_ROWS: List[Tuple[str, ...]] = [
    ('Theft at Downtown Mall', 'Theft', 'Solved', 'High', 'Downtown District', '2024-01-15', '14:30', 'Officer Smith', 'Reported theft of personal belongings from shopping mall', 'Property loss: $500', 'Case closed successfully'),
    ('Vehicle Theft', 'Theft', 'Solved', 'Critical', 'Industrial Zone', '2024-01-20', '08:45', 'Officer Johnson', 'Vehicle stolen from parking lot', 'Vehicle value: $15,000', 'Vehicle recovered'),
    ('Assault Incident', 'Assault', 'Under Investigation', 'High', 'Residential Area', '2024-01-25', '19:20', 'Officer Brown', 'Physical assault reported in residential neighborhood', 'Minor injuries', 'Investigation ongoing'),
    ('Fraud Case', 'Fraud', 'Solved', 'Medium', 'Downtown District', '2024-02-05', '11:15', 'Officer Davis', 'Credit card fraud reported', 'Financial loss: $2,000', 'Suspect identified'),
    ('Vandalism at Park', 'Vandalism', 'Solved', 'Low', 'Residential Area', '2024-02-12', '16:45', 'Officer Wilson', 'Graffiti and property damage at public park', 'Property damage: $300', 'Cleaned and case closed'),
    ('Burglary Report', 'Burglary', 'Solved', 'High', 'Industrial Zone', '2024-02-18', '22:30', 'Officer Martinez', 'Break-in at warehouse facility', 'Stolen equipment: $5,000', 'Suspects apprehended'),
    ('Theft from Store', 'Theft', 'Solved', 'Medium', 'Downtown District', '2024-02-22', '15:20', 'Officer Taylor', 'Shoplifting incident at retail store', 'Merchandise value: $150', 'Case resolved'),
    ('Assault Case', 'Assault', 'Solved', 'High', 'Downtown District', '2024-03-08', '20:15', 'Officer Anderson', 'Physical altercation at bar', 'Injuries reported', 'Case closed'),
    ('Fraud Investigation', 'Fraud', 'Under Investigation', 'Medium', 'Residential Area', '2024-03-15', '10:00', 'Officer White', 'Online scam reported', 'Financial loss: $1,500', 'Investigation in progress'),
    ('Vandalism Incident', 'Vandalism', 'Solved', 'Low', 'Industrial Zone', '2024-03-20', '18:00', 'Officer Harris', 'Property damage to business', 'Damage cost: $800', 'Repairs completed'),
    ('Theft Report', 'Theft', 'Solved', 'High', 'Downtown District', '2024-03-25', '12:30', 'Officer Clark', 'Bicycle theft from public area', 'Bicycle value: $400', 'Recovered'),
    ('Burglary Case', 'Burglary', 'Solved', 'Critical', 'Residential Area', '2024-03-28', '23:45', 'Officer Lewis', 'Home break-in reported', 'Stolen items: $3,000', 'Suspect arrested'),
    ('Assault Report', 'Assault', 'Open', 'High', 'Industrial Zone', '2024-04-05', '17:20', None, 'Workplace altercation', 'Minor injuries', 'Awaiting investigation'),
    ('Theft Case', 'Theft', 'Solved', 'Medium', 'Downtown District', '2024-04-10', '14:00', 'Officer Walker', 'Pickpocket incident', 'Cash and wallet stolen', 'Case resolved'),
    ('Fraud Report', 'Fraud', 'Solved', 'Medium', 'Residential Area', '2024-04-15', '11:45', 'Officer Hall', 'Identity theft case', 'Personal information compromised', 'Identity restored'),
    ('Vandalism Report', 'Vandalism', 'Solved', 'Low', 'Downtown District', '2024-04-20', '19:30', 'Officer Allen', 'Graffiti on public building', 'Cleaning cost: $200', 'Removed'),
    ('Burglary Investigation', 'Burglary', 'Under Investigation', 'High', 'Industrial Zone', '2024-04-25', '06:00', 'Officer Young', 'Warehouse break-in', 'Equipment stolen: $8,000', 'Active investigation'),
    ('Theft Incident', 'Theft', 'Solved', 'High', 'Downtown District', '2024-05-03', '13:15', 'Officer King', 'Package theft from doorstep', 'Package value: $250', 'Resolved'),
    ('Assault Case', 'Assault', 'Solved', 'Critical', 'Residential Area', '2024-05-08', '21:00', 'Officer Wright', 'Domestic dispute', 'Injuries sustained', 'Case closed'),
    ('Fraud Case', 'Fraud', 'Open', 'Medium', 'Industrial Zone', '2024-05-12', '10:30', None, 'Business email compromise', 'Financial loss: $5,000', 'Pending review'),
    ('Vandalism Report', 'Vandalism', 'Solved', 'Low', 'Downtown District', '2024-05-18', '16:00', 'Officer Lopez', 'Property damage to vehicle', 'Repair cost: $600', 'Fixed'),
    ('Burglary Report', 'Burglary', 'Solved', 'High', 'Residential Area', '2024-05-22', '02:30', 'Officer Hill', 'Home invasion', 'Stolen electronics: $4,500', 'Suspects identified'),
    ('Theft Report', 'Theft', 'Under Investigation', 'Medium', 'Industrial Zone', '2024-05-28', '15:45', 'Officer Scott', 'Equipment theft from construction site', 'Equipment value: $2,500', 'Investigation ongoing'),
    ('Theft Case', 'Theft', 'Solved', 'High', 'Downtown District', '2024-06-02', '11:20', 'Officer Green', 'Jewelry theft from store', 'Jewelry value: $3,000', 'Recovered'),
    ('Assault Report', 'Assault', 'Open', 'High', 'Residential Area', '2024-06-05', '19:45', None, 'Street altercation', 'Injuries reported', 'Awaiting assignment'),
    ('Fraud Investigation', 'Fraud', 'Under Investigation', 'Medium', 'Downtown District', '2024-06-08', '09:15', 'Officer Adams', 'Bank fraud case', 'Unauthorized transactions: $1,200', 'Investigation active'),
    ('Vandalism Case', 'Vandalism', 'Solved', 'Low', 'Industrial Zone', '2024-06-12', '14:00', 'Officer Baker', 'Property damage to business sign', 'Repair cost: $400', 'Restored'),
    ('Burglary Report', 'Burglary', 'Solved', 'Critical', 'Residential Area', '2024-06-15', '23:00', 'Officer Nelson', 'Apartment break-in', 'Stolen items: $2,800', 'Case closed'),
    ('Theft Incident', 'Theft', 'Solved', 'Medium', 'Downtown District', '2024-06-20', '16:30', 'Officer Carter', 'Wallet theft', 'Cash and cards stolen', 'Resolved'),
    ('Assault Case', 'Assault', 'Under Investigation', 'High', 'Industrial Zone', '2024-06-22', '18:15', 'Officer Mitchell', 'Workplace violence', 'Employee injured', 'Investigation ongoing'),
    ('Fraud Report', 'Fraud', 'Open', 'Medium', 'Residential Area', '2024-06-25', '12:45', None, 'Phone scam reported', 'Attempted fraud: $800', 'Pending review'),
    ('Vandalism Report', 'Vandalism', 'Solved', 'Low', 'Downtown District', '2024-06-28', '20:00', 'Officer Perez', 'Graffiti on public property', 'Cleaning cost: $150', 'Removed'),
]


def generate_mock_reports(reporter_id: str = DEFAULT_RESIDENT_REPORTER_ID) -> List[Report]:
    reports = []
    for title, type_, status, priority, location, day, clock, officer, description, damage, notes in MOCK_REPORT_ROWS:
        reported = date.fromisoformat(day)
        updates = [ReportUpdate(date=day, time=clock, note='Report submitted')]
        if status == 'Solved':
            # closed two days after submission
            updates.append(ReportUpdate(
                date=(reported + timedelta(days=2)).isoformat(),
                time=clock,
                note='Status changed to resolved',
            ))
        submitted = datetime.combine(reported, datetime.strptime(clock, '%H:%M').time())

        reports.append(Report(
            id=generate_report_id(now=submitted),
            title=f"Mock - {title}",
            type=type_,
            status=status,
            priority=priority,
            location=location,
            date=day,
            time=format_time(submitted),
            officer=officer or 'Unassigned',
            description=description,
            damage=damage,
            notes=notes,
            updates=updates,
            reporterId=reporter_id,
        ))
    return reports
