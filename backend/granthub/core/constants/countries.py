"""Supported countries and their accepted spellings."""

COUNTRIES: dict[str, tuple[str, ...]] = {
    "AL": ("Albania", "Shqiperia", "Shqipëria"),
    "AD": ("Andorra",),
    "AT": ("Austria", "Oesterreich", "Österreich"),
    "BY": ("Belarus",),
    "BE": ("Belgium", "Belgie", "Belgique", "België"),
    "BA": ("Bosnia and Herzegovina", "Bosnia", "Herzegovina"),
    "BG": ("Bulgaria",),
    "HR": ("Croatia", "Hrvatska"),
    "CY": ("Cyprus",),
    "CZ": ("Czechia", "Czech Republic"),
    "DK": ("Denmark", "Danmark"),
    "EE": ("Estonia", "Eesti"),
    "FI": ("Finland", "Suomi"),
    "FR": ("France",),
    "DE": ("Germany", "Deutschland"),
    "GR": ("Greece", "Hellas", "Ελλάδα"),
    "HU": ("Hungary", "Magyarorszag", "Magyarország"),
    "IS": ("Iceland", "Island"),
    "IE": ("Ireland", "Eire", "Éire"),
    "IT": ("Italy", "Italia"),
    "XK": ("Kosovo",),
    "LV": ("Latvia", "Latvija"),
    "LI": ("Liechtenstein",),
    "LT": ("Lithuania", "Lietuva"),
    "LU": ("Luxembourg", "Luxemburg"),
    "MT": ("Malta",),
    "MD": ("Moldova", "Republic of Moldova"),
    "MC": ("Monaco",),
    "ME": ("Montenegro", "Crna Gora"),
    "NL": ("Netherlands", "Nederland", "The Netherlands", "Holland"),
    "MK": ("North Macedonia", "Macedonia", "Severna Makedonija"),
    "NO": ("Norway", "Norge", "Noreg"),
    "PL": ("Poland", "Polska"),
    "PT": ("Portugal",),
    "RO": ("Romania", "România"),
    "RU": ("Russia", "Russian Federation"),
    "SM": ("San Marino",),
    "RS": ("Serbia", "Srbija"),
    "SK": ("Slovakia", "Slovak Republic", "Slovensko"),
    "SI": ("Slovenia", "Slovenija"),
    "ES": ("Spain", "Espana", "España"),
    "SE": ("Sweden", "Sverige"),
    "CH": ("Switzerland", "Schweiz", "Suisse", "Svizzera"),
    "TR": ("Turkey", "Türkiye", "Turkiye"),
    "UA": ("Ukraine", "Ukraina", "Україна"),
    "GB": ("United Kingdom", "UK", "Great Britain", "Britain"),
    "VA": ("Vatican City", "Holy See"),
}
